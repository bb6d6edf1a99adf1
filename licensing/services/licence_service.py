"""
services/licence_service.py
---------------------------
Builds the licence snapshot for an authenticated user.

The user row must be deep loaded (see LicenceService.deep_load_options):
  user.customers → customer.jobs
  user.jobs      → job.customer
  user.realms

Merge rules:
  customers = direct customers ∪ owners of the user's direct jobs
  jobs      = direct jobs ∪ every job of the direct customers
Both merges key on the row id, so the same row reached by two paths (once
directly, once through a join) collapses to one entry. Each job is nested
under the customer whose id matches its customer_id; customer-less jobs do
not appear in the tree.

The tree is fully assembled before any storage probe starts; probes then
fill real_cloud_vartree_names / is_accessible on the existing LicenceJob
objects.
"""

from typing import Iterable, Optional, TypeVar

from sqlalchemy.orm import selectinload

from licensing.core.logging import get_logger
from licensing.db.base import split_names, utcnow
from licensing.models import Customer, DataLocation, Job, User
from licensing.schemas.licence import LicenceCustomer, LicenceFull, LicenceJob, LicenceRealm
from licensing.services.storage_probe import StorageProbe

logger = get_logger(__name__)

RowT = TypeVar("RowT", Customer, Job)


def merge_by_id(*groups: Iterable[RowT]) -> dict[int, RowT]:
    """Union rows keyed on id, keeping first-seen order."""
    merged: dict[int, RowT] = {}
    for group in groups:
        for row in group:
            merged.setdefault(row.id, row)
    return merged


def _licence_job(job: Job) -> LicenceJob:
    return LicenceJob(
        id=str(job.id),
        name=job.name,
        display_name=job.display_name,
        description=job.description,
        info=job.info,
        logo=job.logo,
        sequence=job.sequence,
        url=job.url,
        vartree_names=split_names(job.vartree_names),
    )


def _licence_customer(customer: Customer, jobs: list[LicenceJob]) -> LicenceCustomer:
    return LicenceCustomer(
        id=str(customer.id),
        name=customer.name,
        display_name=customer.display_name,
        comment=customer.comment,
        storage_key=customer.storage_key,
        info=customer.info,
        logo=customer.logo,
        sign_in_logo=customer.sign_in_logo,
        sign_in_note=customer.sign_in_note,
        sequence=customer.sequence,
        jobs=jobs,
    )


class LicenceService:

    @staticmethod
    def deep_load_options() -> list:
        return [
            selectinload(User.customers).selectinload(Customer.jobs),
            selectinload(User.jobs).selectinload(Job.customer),
            selectinload(User.realms),
        ]

    @staticmethod
    def assemble(user: User, product_key: Optional[str] = None) -> LicenceFull:
        """Build the licence tree without touching object storage."""
        job_owners = [j.customer for j in user.jobs if j.customer is not None]
        customers = merge_by_id(user.customers, job_owners)
        jobs = merge_by_id(user.jobs, (j for c in user.customers for j in c.jobs))

        tree = [
            _licence_customer(
                customer,
                [_licence_job(j) for j in jobs.values() if j.customer_id == customer.id],
            )
            for customer in customers.values()
        ]

        location = None
        if user.data_location is not None:
            try:
                location = DataLocation(user.data_location).name
            except ValueError:
                # Codes without an enum member are reported as their number.
                location = str(user.data_location)

        return LicenceFull(
            id=str(user.id),
            name=user.name,
            email=user.email,
            comment=user.comment,
            entity_id=user.entity_id,
            filter=user.filter,
            data_location=location,
            created=user.created,
            last_login=user.last_login or utcnow(),
            login_count=user.login_count,
            login_max=user.login_max,
            login_macs=user.login_macs,
            version=user.version,
            min_version=user.min_version,
            sequence=user.sequence,
            sunset=user.sunset,
            product_key=product_key,
            roles=split_names(user.roles),
            cloud_customer_names=split_names(user.cloud_customer_names),
            cloud_job_names=split_names(user.job_names),
            vartree_names=split_names(user.vartree_names),
            dashboard_names=split_names(user.dashboard_names),
            realms=[
                LicenceRealm(id=str(r.id), name=r.name, inactive=r.inactive, policy=r.policy)
                for r in user.realms
            ],
            customers=tree,
        )

    @staticmethod
    async def build_licence(
        user: User,
        probe: StorageProbe,
        product_key: Optional[str] = None,
    ) -> LicenceFull:
        licence = LicenceService.assemble(user, product_key)
        targets = [
            (customer.storage_key, job)
            for customer in licence.customers
            if customer.storage_key
            for job in customer.jobs
        ]
        await probe.scan_jobs(targets)
        logger.info(
            "Licence built",
            user_id=licence.id,
            customers=len(licence.customers),
            probed_jobs=len(targets),
        )
        return licence
