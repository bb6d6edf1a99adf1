"""
services/snapshots.py
---------------------
Canonical re-reads.

Every write path finishes by reading the parent row back from the database
(populate_existing, so nothing cached in the session leaks into the answer)
together with its direct children, and converting it to the outbound
snapshot. Children are summaries: they never carry their own children.
"""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from licensing.models import Customer, Job, Realm, User
from licensing.schemas import CustomerRead, JobRead, RealmRead, UserRead

SNAPSHOT_SHAPES: dict[type, tuple[type, tuple[str, ...]]] = {
    User: (UserRead, ("customers", "jobs", "realms")),
    Customer: (CustomerRead, ("users", "jobs", "realms")),
    Job: (JobRead, ("users", "customer")),
    Realm: (RealmRead, ("users", "customers")),
}


def child_options(model: type) -> list:
    _, children = SNAPSHOT_SHAPES[model]
    return [selectinload(getattr(model, name)) for name in children]


def to_snapshot(row: Any, deep: bool = False) -> Any:
    schema, _ = SNAPSHOT_SHAPES[type(row)]
    return schema.from_row(row, deep=deep)


async def reread(db: AsyncSession, model: type, row_id: int) -> Optional[Any]:
    row = await db.scalar(
        select(model)
        .options(*child_options(model))
        .where(model.id == row_id)
        .execution_options(populate_existing=True)
    )
    if row is None:
        return None
    return to_snapshot(row, deep=True)
