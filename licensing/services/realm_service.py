"""
services/realm_service.py
-------------------------
Realm CRUD.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from licensing.core.errors import parse_id
from licensing.core.logging import get_logger
from licensing.models import Realm
from licensing.schemas import RealmRead, RealmUpsert, UpsertResult
from licensing.schemas.realm import RealmBase
from licensing.services.snapshots import child_options, to_snapshot
from licensing.services.upsert import upsert_row

logger = get_logger(__name__)


class RealmService:

    @staticmethod
    async def read(db: AsyncSession, realm_id: str) -> Optional[RealmRead]:
        rid = parse_id(realm_id, "Realm")
        realm = await db.scalar(
            select(Realm).options(*child_options(Realm)).where(Realm.id == rid)
        )
        return to_snapshot(realm, deep=True) if realm is not None else None

    @staticmethod
    async def read_by_name(db: AsyncSession, realm_name: str) -> list[RealmRead]:
        result = await db.scalars(
            select(Realm).options(*child_options(Realm)).where(Realm.name == realm_name)
        )
        return [to_snapshot(r, deep=True) for r in result.all()]

    @staticmethod
    async def list_realms(db: AsyncSession) -> list[RealmRead]:
        result = await db.scalars(select(Realm).order_by(Realm.name))
        return [to_snapshot(r) for r in result.all()]

    @staticmethod
    async def upsert(db: AsyncSession, data: RealmUpsert) -> UpsertResult:
        return await upsert_row(db, Realm, data, RealmBase)

    @staticmethod
    async def delete(db: AsyncSession, realm_id: str) -> int:
        rid = parse_id(realm_id, "Realm")
        realm = await db.scalar(
            select(Realm)
            .options(selectinload(Realm.users), selectinload(Realm.customers))
            .where(Realm.id == rid)
        )
        if realm is None:
            return 0
        realm.users.clear()
        realm.customers.clear()
        await db.flush()
        await db.delete(realm)
        await db.commit()
        logger.info("Realm deleted", realm_id=rid)
        return 1

    @staticmethod
    async def validate(db: AsyncSession, realm_id: str) -> list[str]:
        # Realms carry no external resources to check.
        parse_id(realm_id, "Realm")
        return []
