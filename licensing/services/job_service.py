"""
services/job_service.py
-----------------------
Job CRUD.

A job's customer is set once, on insert. Updates leave customer_id alone
whatever the payload carries.
"""

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from licensing.core.errors import parse_id
from licensing.core.logging import get_logger
from licensing.models import Job
from licensing.schemas import JobRead, JobUpsert, UpsertResult
from licensing.schemas.job import JobBase
from licensing.services.snapshots import child_options, to_snapshot
from licensing.services.upsert import upsert_row

logger = get_logger(__name__)


def _fix_customer(row: Job, data: JobUpsert, inserting: bool) -> None:
    if inserting and data.customer_id is not None:
        row.customer_id = parse_id(data.customer_id, "Customer")


class JobService:

    @staticmethod
    async def read(db: AsyncSession, job_id: str) -> Optional[JobRead]:
        jid = parse_id(job_id, "Job")
        job = await db.scalar(select(Job).options(*child_options(Job)).where(Job.id == jid))
        return to_snapshot(job, deep=True) if job is not None else None

    @staticmethod
    async def read_by_name(db: AsyncSession, job_name: str) -> list[JobRead]:
        result = await db.scalars(
            select(Job).options(*child_options(Job)).where(Job.name == job_name)
        )
        return [to_snapshot(j, deep=True) for j in result.all()]

    @staticmethod
    async def list_jobs(db: AsyncSession, customer_ids: Sequence[str] = ()) -> list[JobRead]:
        """All jobs, or only those owned by the given customers."""
        query = select(Job).order_by(Job.id)
        cids = [parse_id(c, "Customer") for c in customer_ids]
        if cids:
            query = query.where(Job.customer_id.in_(cids))
        result = await db.scalars(query)
        return [to_snapshot(j) for j in result.all()]

    @staticmethod
    async def upsert(db: AsyncSession, data: JobUpsert) -> UpsertResult:
        return await upsert_row(db, Job, data, JobBase, hook=_fix_customer)

    @staticmethod
    async def delete(db: AsyncSession, job_id: str) -> int:
        jid = parse_id(job_id, "Job")
        job = await db.scalar(
            select(Job).options(selectinload(Job.users)).where(Job.id == jid)
        )
        if job is None:
            return 0
        job.users.clear()
        await db.flush()
        await db.delete(job)
        await db.commit()
        logger.info("Job deleted", job_id=jid)
        return 1

    @staticmethod
    async def validate(db: AsyncSession, job_id: str) -> list[str]:
        jid = parse_id(job_id, "Job")
        job = await db.get(Job, jid)
        if job is None:
            return [f"Job Id {job_id} is not in the licensing database."]
        return []
