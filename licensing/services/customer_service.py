"""
services/customer_service.py
----------------------------
Customer CRUD and storage validation.

Deleting a customer also deletes the jobs it owns: a job's customer is fixed
at creation, so an orphaned job could never be re-attached.
"""

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from licensing.core.errors import parse_id
from licensing.core.logging import get_logger
from licensing.models import Customer, Job, Realm
from licensing.schemas import CustomerPick, CustomerRead, CustomerUpsert, JobPick, UpsertResult
from licensing.schemas.customer import CustomerBase
from licensing.services.snapshots import child_options, to_snapshot
from licensing.services.upsert import upsert_row
from licensing.storage.base import ObjectStore, StorageError

logger = get_logger(__name__)


def _realm_filter(realm_ids: Sequence[str]):
    rids = [parse_id(r, "Realm") for r in realm_ids]
    if not rids:
        return None
    return Customer.realms.any(Realm.id.in_(rids))


class CustomerService:

    @staticmethod
    async def read(db: AsyncSession, customer_id: str) -> Optional[CustomerRead]:
        cid = parse_id(customer_id, "Customer")
        customer = await db.scalar(
            select(Customer).options(*child_options(Customer)).where(Customer.id == cid)
        )
        return to_snapshot(customer, deep=True) if customer is not None else None

    @staticmethod
    async def read_by_name(db: AsyncSession, customer_name: str) -> list[CustomerRead]:
        result = await db.scalars(
            select(Customer)
            .options(*child_options(Customer))
            .where(Customer.name == customer_name)
        )
        return [to_snapshot(c, deep=True) for c in result.all()]

    @staticmethod
    async def list_customers(
        db: AsyncSession, realm_ids: Sequence[str] = ()
    ) -> list[CustomerRead]:
        query = select(Customer).order_by(Customer.id)
        realm_filter = _realm_filter(realm_ids)
        if realm_filter is not None:
            query = query.where(realm_filter)
        result = await db.scalars(query)
        return [to_snapshot(c) for c in result.all()]

    @staticmethod
    async def list_picks(
        db: AsyncSession, realm_ids: Sequence[str] = ()
    ) -> list[CustomerPick]:
        """Customer picks with their jobs nested, both ordered by name."""
        query = (
            select(Customer)
            .options(selectinload(Customer.jobs))
            .order_by(Customer.name)
        )
        realm_filter = _realm_filter(realm_ids)
        if realm_filter is not None:
            query = query.where(realm_filter)
        result = await db.scalars(query)
        return [
            CustomerPick(
                id=str(c.id),
                name=c.name,
                display_name=c.display_name,
                is_inactive=c.inactive,
                jobs=[
                    JobPick(
                        id=str(j.id),
                        name=j.name,
                        display_name=j.display_name,
                        is_inactive=j.inactive,
                    )
                    for j in sorted(c.jobs, key=lambda j: j.name)
                ],
            )
            for c in result.all()
        ]

    @staticmethod
    async def upsert(db: AsyncSession, data: CustomerUpsert) -> UpsertResult:
        return await upsert_row(db, Customer, data, CustomerBase)

    @staticmethod
    async def delete(db: AsyncSession, customer_id: str) -> int:
        cid = parse_id(customer_id, "Customer")
        if await db.get(Customer, cid) is None:
            return 0

        jobs = (
            await db.scalars(
                select(Job).options(selectinload(Job.users)).where(Job.customer_id == cid)
            )
        ).all()
        for job in jobs:
            job.users.clear()
        await db.flush()
        for job in jobs:
            await db.delete(job)
        await db.flush()

        # Loaded after the jobs are gone, so the jobs collection comes back empty.
        customer = await db.scalar(
            select(Customer)
            .options(*child_options(Customer))
            .where(Customer.id == cid)
            .execution_options(populate_existing=True)
        )
        customer.users.clear()
        customer.realms.clear()
        await db.flush()
        await db.delete(customer)
        await db.commit()
        logger.info("Customer deleted", customer_id=cid, jobs_deleted=len(jobs))
        return 1

    @staticmethod
    async def validate(
        db: AsyncSession, store: ObjectStore, customer_id: str
    ) -> list[str]:
        """
        Check the customer exists and that its storage key opens an account.
        Returns a list of human-readable problems; empty means valid.
        """
        cid = parse_id(customer_id, "Customer")
        customer = await db.get(Customer, cid)
        if customer is None:
            return [f"Customer Id {customer_id} is not in the licensing database."]
        if not customer.storage_key:
            return []
        try:
            account = await store.describe_account(customer.storage_key)
        except StorageError as exc:
            logger.warning("Customer storage validation failed", customer_id=cid, error=str(exc))
            first_line = exc.message.splitlines()[0] if exc.message else ""
            return [f"{exc.error_type.value}: {first_line}"]
        logger.info("Customer storage validated", customer_id=cid, account=account)
        return []
