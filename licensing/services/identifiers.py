"""
services/identifiers.py
-----------------------
Collision-free identifier allocation.

Every entity kind draws its ids at random from its own reserved range, so an
id alone tells you what kind of entity it names and ids never collide across
kinds. A candidate is checked against the table before use; if a concurrent
caller inserts the same candidate first, the INSERT fails on the primary key
and a fresh random draw is made. Ids are never incremented.
"""

import random
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from licensing.core.config import settings
from licensing.core.errors import IdentifierExhaustedError, NameConflictError
from licensing.core.logging import get_logger
from licensing.models import Customer, Job, Realm, User

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", User, Customer, Job, Realm)

# Half-open [low, high) ranges, disjoint per kind.
ID_RANGES: dict[type, tuple[int, int]] = {
    User: (10_000_000, 20_000_000),
    Customer: (30_000_000, 40_000_000),
    Job: (50_000_000, 60_000_000),
    Realm: (70_000_000, 80_000_000),
}


async def _id_exists(db: AsyncSession, model: type, candidate: int) -> bool:
    found = await db.scalar(select(model.id).where(model.id == candidate))
    return found is not None


async def new_id(db: AsyncSession, model: type) -> int:
    """Return a random id from the model's range that is not yet in use."""
    low, high = ID_RANGES[model]
    for _ in range(settings.ID_ALLOCATION_MAX_ATTEMPTS):
        candidate = random.randrange(low, high)
        if not await _id_exists(db, model, candidate):
            return candidate
    raise IdentifierExhaustedError(
        f"No free {model.__name__} id found after "
        f"{settings.ID_ALLOCATION_MAX_ATTEMPTS} attempts",
        kind=model.__name__,
    )


async def insert_with_new_id(db: AsyncSession, row: ModelT) -> ModelT:
    """
    Assign a fresh id to a transient row and flush the INSERT.

    Must be the first write in the session: an IntegrityError rolls the
    session back before retrying. A failure that is not an id collision is
    reported as a name conflict (the only other unique constraint).
    """
    model = type(row)
    for attempt in range(settings.ID_ALLOCATION_MAX_ATTEMPTS):
        row.id = await new_id(db, model)
        db.add(row)
        try:
            await db.flush()
            return row
        except IntegrityError:
            await db.rollback()
            if not await _id_exists(db, model, row.id):
                raise NameConflictError(
                    f"{model.__name__} Name '{row.name}' already exists",
                    kind=model.__name__,
                    identifier=row.name,
                ) from None
            logger.info(
                "Identifier collision, redrawing",
                kind=model.__name__,
                candidate=row.id,
                attempt=attempt + 1,
            )
    raise IdentifierExhaustedError(
        f"{model.__name__} insert kept colliding on new ids",
        kind=model.__name__,
    )
