"""
services/upsert.py
------------------
Create-or-update shared by every entity kind.

  id is None   → allocate a new id, insert, status INSERTED
  id is set    → row missing: status NOT_FOUND, nothing written
                 row present: overwrite every mutable field, status UPDATED

List fields are joined into their delimited column form on the way in.
After the commit the row is re-read, so the returned snapshot shows exactly
what was stored (generated id, created timestamp included).
"""

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from licensing.core.errors import NameConflictError, parse_id
from licensing.core.logging import get_logger
from licensing.db.base import join_names, utcnow
from licensing.schemas.common import UpsertResult, UpsertStatus
from licensing.services.identifiers import insert_with_new_id
from licensing.services.snapshots import reread

logger = get_logger(__name__)

RowHook = Callable[[Any, Any, bool], None]


def apply_fields(row: Any, data: BaseModel, fields_from: type[BaseModel]) -> None:
    """Copy every field declared on ``fields_from`` from ``data`` onto ``row``."""
    for name in fields_from.model_fields:
        value = getattr(data, name)
        if isinstance(value, list):
            value = join_names(value)
        elif isinstance(value, Enum):
            value = value.value
        setattr(row, name, value)


async def upsert_row(
    db: AsyncSession,
    model: type,
    data: Any,
    fields_from: type[BaseModel],
    hook: Optional[RowHook] = None,
) -> UpsertResult:
    """
    ``hook(row, data, inserting)`` runs after the common fields are copied and
    before anything is flushed, for kind-specific columns (password hash,
    fixed foreign keys).
    """
    kind = model.__name__
    inserting = data.id is None

    if inserting:
        row = model(created=utcnow())
    else:
        row_id = parse_id(data.id, kind)
        row = await db.get(model, row_id)
        if row is None:
            return UpsertResult(
                entity=None,
                status=UpsertStatus.NOT_FOUND,
                message=f"{kind} Id {data.id} not found for update",
            )

    apply_fields(row, data, fields_from)
    if hook is not None:
        hook(row, data, inserting)

    if inserting:
        await insert_with_new_id(db, row)
    else:
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise NameConflictError(
                f"{kind} Name '{data.name}' already exists",
                kind=kind,
                identifier=data.name,
            ) from None

    await db.commit()
    logger.info(
        f"{kind} upserted",
        id=row.id,
        status="inserted" if inserting else "updated",
    )
    entity = await reread(db, model, row.id)
    return UpsertResult(
        entity=entity,
        status=UpsertStatus.INSERTED if inserting else UpsertStatus.UPDATED,
    )
