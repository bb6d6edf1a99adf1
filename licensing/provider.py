"""
provider.py
-----------
LicensingProvider: the public surface of the package.

Every public coroutine is one unit of work: it opens a session from the
provider's own engine, runs a service call, and commits (or rolls back on
error) before returning. Identifiers cross this boundary as decimal strings.

Usage:
    provider = LicensingProvider("postgresql+asyncpg://...", product_key="...")
    licence = await provider.authenticate_name("alice", "secret")
    await provider.dispose()
"""

from typing import Callable, Optional, Sequence

from sqlalchemy.engine import make_url

from licensing.core.config import settings
from licensing.core.errors import NotSupportedError
from licensing.core.logging import get_logger
from licensing.db.session import build_engine, build_sessionmaker, session_scope
from licensing.schemas import (
    CustomerPick,
    CustomerRead,
    CustomerUpsert,
    JobRead,
    JobUpsert,
    LicenceFull,
    RealmRead,
    RealmUpsert,
    UpsertResult,
    UserPick,
    UserRead,
    UserUpsert,
)
from licensing.services.customer_service import CustomerService
from licensing.services.job_service import JobService
from licensing.services.licence_service import LicenceService
from licensing.services.realm_service import RealmService
from licensing.services.relationships import EDGES, RelationshipMutator
from licensing.services.storage_probe import StorageProbe
from licensing.services.user_service import UserService
from licensing.storage.base import ObjectStore
from licensing.storage.s3 import S3ObjectStore

logger = get_logger(__name__)

LogListener = Callable[[str], None]


class LicensingProvider:
    """Licensing records of users, customers, jobs and realms in a SQL database."""

    description = (
        "Licensing provider that keeps user accounts, customers, jobs and realms "
        "in a SQL database and discovers job vartrees in customer object storage."
    )
    supports_realms = True

    def __init__(
        self,
        database_url: Optional[str] = None,
        product_key: Optional[str] = None,
        object_store: Optional[ObjectStore] = None,
    ) -> None:
        self._database_url = database_url or settings.DATABASE_URL
        self._product_key = product_key if product_key is not None else settings.PRODUCT_KEY
        self._store = object_store or S3ObjectStore()
        self._probe = StorageProbe(self._store)
        self.engine = build_engine(self._database_url)
        self._sessions = build_sessionmaker(self.engine)
        self._listeners: list[LogListener] = []
        self._mutator = RelationshipMutator(log=self._log)

    # ── Metadata / log stream ───────────────────────────────────────────────

    @property
    def name(self) -> str:
        return settings.APP_NAME

    @property
    def config_summary(self) -> str:
        url = make_url(self._database_url)
        return f"{url.host or '(SERVER?)'};{url.database or '(DATABASE?)'}"

    def add_log_listener(self, callback: LogListener) -> None:
        self._listeners.append(callback)

    def _log(self, message: str) -> None:
        if message.startswith("D "):
            logger.debug(message)
        else:
            logger.info(message)
        for listener in self._listeners:
            listener(message)

    async def dispose(self) -> None:
        await self.engine.dispose()

    # ── Identity ────────────────────────────────────────────────────────────

    async def authenticate_id(self, user_id: str, password: Optional[str]) -> LicenceFull:
        async with session_scope(self._sessions) as db:
            user = await UserService.authenticate_id(db, user_id, password)
        return await LicenceService.build_licence(user, self._probe, self._product_key)

    async def authenticate_name(self, user_name: str, password: Optional[str]) -> LicenceFull:
        async with session_scope(self._sessions) as db:
            user = await UserService.authenticate_name(db, user_name, password)
        return await LicenceService.build_licence(user, self._probe, self._product_key)

    async def get_free_licence(self, client_identifier: Optional[str] = None) -> LicenceFull:
        async with session_scope(self._sessions) as db:
            user = await UserService.guest(db, settings.GUEST_ACCOUNT_NAME)
        logger.info("Free licence issued", client=client_identifier)
        return await LicenceService.build_licence(user, self._probe, self._product_key)

    async def change_password(
        self, user_id: str, old_password: Optional[str], new_password: str
    ) -> int:
        async with session_scope(self._sessions) as db:
            return await UserService.change_password(db, user_id, old_password, new_password)

    async def reset_password(self, user_name: str) -> None:
        raise NotSupportedError(
            "Password reset is not supported by this provider",
            kind="User",
            identifier=user_name,
        )

    async def update_account(
        self,
        user_id: str,
        user_name: str,
        comment: Optional[str],
        email: Optional[str],
    ) -> int:
        async with session_scope(self._sessions) as db:
            return await UserService.update_account(db, user_id, user_name, comment, email)

    # ── Users ───────────────────────────────────────────────────────────────

    async def read_user(self, user_id: str) -> Optional[UserRead]:
        async with session_scope(self._sessions) as db:
            return await UserService.read(db, user_id)

    async def read_users_by_name(self, user_name: str) -> list[UserRead]:
        async with session_scope(self._sessions) as db:
            return await UserService.read_by_name(db, user_name)

    async def list_users(self, *realm_ids: str) -> list[UserRead]:
        async with session_scope(self._sessions) as db:
            return await UserService.list_users(db, realm_ids)

    async def list_user_picks_for_realms(self, *realm_ids: str) -> list[UserPick]:
        async with session_scope(self._sessions) as db:
            return await UserService.list_picks(db, realm_ids)

    async def upsert_user(self, user: UserUpsert) -> UpsertResult:
        async with session_scope(self._sessions) as db:
            return await UserService.upsert(db, user)

    async def delete_user(self, user_id: str) -> int:
        async with session_scope(self._sessions) as db:
            return await UserService.delete(db, user_id)

    async def validate_user(self, user_id: str) -> list[str]:
        async with session_scope(self._sessions) as db:
            return await UserService.validate(db, user_id)

    async def connect_user_child_customers(
        self, user_id: str, customer_ids: Sequence[str]
    ) -> Optional[UserRead]:
        return await self._connect("UserChildCustomer", user_id, customer_ids)

    async def replace_user_child_customers(
        self, user_id: str, customer_ids: Sequence[str]
    ) -> Optional[UserRead]:
        return await self._replace("UserChildCustomer", user_id, customer_ids)

    async def disconnect_user_child_customer(
        self, user_id: str, customer_id: str
    ) -> Optional[UserRead]:
        return await self._disconnect("UserChildCustomer", user_id, customer_id)

    async def connect_user_child_jobs(
        self, user_id: str, job_ids: Sequence[str]
    ) -> Optional[UserRead]:
        return await self._connect("UserChildJob", user_id, job_ids)

    async def replace_user_child_jobs(
        self, user_id: str, job_ids: Sequence[str]
    ) -> Optional[UserRead]:
        return await self._replace("UserChildJob", user_id, job_ids)

    async def disconnect_user_child_job(self, user_id: str, job_id: str) -> Optional[UserRead]:
        return await self._disconnect("UserChildJob", user_id, job_id)

    async def connect_user_child_realms(
        self, user_id: str, realm_ids: Sequence[str]
    ) -> Optional[UserRead]:
        return await self._connect("UserChildRealm", user_id, realm_ids)

    async def replace_user_child_realms(
        self, user_id: str, realm_ids: Sequence[str]
    ) -> Optional[UserRead]:
        return await self._replace("UserChildRealm", user_id, realm_ids)

    async def disconnect_user_child_realm(
        self, user_id: str, realm_id: str
    ) -> Optional[UserRead]:
        return await self._disconnect("UserChildRealm", user_id, realm_id)

    # ── Customers ───────────────────────────────────────────────────────────

    async def read_customer(self, customer_id: str) -> Optional[CustomerRead]:
        async with session_scope(self._sessions) as db:
            return await CustomerService.read(db, customer_id)

    async def read_customers_by_name(self, customer_name: str) -> list[CustomerRead]:
        async with session_scope(self._sessions) as db:
            return await CustomerService.read_by_name(db, customer_name)

    async def list_customers(self, *realm_ids: str) -> list[CustomerRead]:
        async with session_scope(self._sessions) as db:
            return await CustomerService.list_customers(db, realm_ids)

    async def list_customer_picks_for_realms(self, *realm_ids: str) -> list[CustomerPick]:
        async with session_scope(self._sessions) as db:
            return await CustomerService.list_picks(db, realm_ids)

    async def upsert_customer(self, customer: CustomerUpsert) -> UpsertResult:
        async with session_scope(self._sessions) as db:
            return await CustomerService.upsert(db, customer)

    async def delete_customer(self, customer_id: str) -> int:
        async with session_scope(self._sessions) as db:
            return await CustomerService.delete(db, customer_id)

    async def validate_customer(self, customer_id: str) -> list[str]:
        async with session_scope(self._sessions) as db:
            return await CustomerService.validate(db, self._store, customer_id)

    async def connect_customer_child_users(
        self, customer_id: str, user_ids: Sequence[str]
    ) -> Optional[CustomerRead]:
        return await self._connect("CustomerChildUser", customer_id, user_ids)

    async def replace_customer_child_users(
        self, customer_id: str, user_ids: Sequence[str]
    ) -> Optional[CustomerRead]:
        return await self._replace("CustomerChildUser", customer_id, user_ids)

    async def disconnect_customer_child_user(
        self, customer_id: str, user_id: str
    ) -> Optional[CustomerRead]:
        return await self._disconnect("CustomerChildUser", customer_id, user_id)

    async def connect_customer_child_jobs(
        self, customer_id: str, job_ids: Sequence[str]
    ) -> Optional[CustomerRead]:
        return await self._connect("CustomerChildJob", customer_id, job_ids)

    async def replace_customer_child_jobs(
        self, customer_id: str, job_ids: Sequence[str]
    ) -> Optional[CustomerRead]:
        return await self._replace("CustomerChildJob", customer_id, job_ids)

    async def disconnect_customer_child_job(
        self, customer_id: str, job_id: str
    ) -> Optional[CustomerRead]:
        return await self._disconnect("CustomerChildJob", customer_id, job_id)

    # ── Jobs ────────────────────────────────────────────────────────────────

    async def read_job(self, job_id: str) -> Optional[JobRead]:
        async with session_scope(self._sessions) as db:
            return await JobService.read(db, job_id)

    async def read_jobs_by_name(self, job_name: str) -> list[JobRead]:
        async with session_scope(self._sessions) as db:
            return await JobService.read_by_name(db, job_name)

    async def list_jobs(self, *customer_ids: str) -> list[JobRead]:
        async with session_scope(self._sessions) as db:
            return await JobService.list_jobs(db, customer_ids)

    async def upsert_job(self, job: JobUpsert) -> UpsertResult:
        async with session_scope(self._sessions) as db:
            return await JobService.upsert(db, job)

    async def delete_job(self, job_id: str) -> int:
        async with session_scope(self._sessions) as db:
            return await JobService.delete(db, job_id)

    async def validate_job(self, job_id: str) -> list[str]:
        async with session_scope(self._sessions) as db:
            return await JobService.validate(db, job_id)

    async def connect_job_child_users(
        self, job_id: str, user_ids: Sequence[str]
    ) -> Optional[JobRead]:
        return await self._connect("JobChildUser", job_id, user_ids)

    async def replace_job_child_users(
        self, job_id: str, user_ids: Sequence[str]
    ) -> Optional[JobRead]:
        return await self._replace("JobChildUser", job_id, user_ids)

    async def disconnect_job_child_user(self, job_id: str, user_id: str) -> Optional[JobRead]:
        return await self._disconnect("JobChildUser", job_id, user_id)

    # ── Realms ──────────────────────────────────────────────────────────────

    async def read_realm(self, realm_id: str) -> Optional[RealmRead]:
        async with session_scope(self._sessions) as db:
            return await RealmService.read(db, realm_id)

    async def read_realms_by_name(self, realm_name: str) -> list[RealmRead]:
        async with session_scope(self._sessions) as db:
            return await RealmService.read_by_name(db, realm_name)

    async def list_realms(self) -> list[RealmRead]:
        async with session_scope(self._sessions) as db:
            return await RealmService.list_realms(db)

    async def upsert_realm(self, realm: RealmUpsert) -> UpsertResult:
        async with session_scope(self._sessions) as db:
            return await RealmService.upsert(db, realm)

    async def delete_realm(self, realm_id: str) -> int:
        async with session_scope(self._sessions) as db:
            return await RealmService.delete(db, realm_id)

    async def validate_realm(self, realm_id: str) -> list[str]:
        async with session_scope(self._sessions) as db:
            return await RealmService.validate(db, realm_id)

    async def connect_realm_child_users(
        self, realm_id: str, user_ids: Sequence[str]
    ) -> Optional[RealmRead]:
        return await self._connect("RealmChildUser", realm_id, user_ids)

    async def replace_realm_child_users(
        self, realm_id: str, user_ids: Sequence[str]
    ) -> Optional[RealmRead]:
        return await self._replace("RealmChildUser", realm_id, user_ids)

    async def disconnect_realm_child_user(
        self, realm_id: str, user_id: str
    ) -> Optional[RealmRead]:
        return await self._disconnect("RealmChildUser", realm_id, user_id)

    async def connect_realm_child_customers(
        self, realm_id: str, customer_ids: Sequence[str]
    ) -> Optional[RealmRead]:
        return await self._connect("RealmChildCustomer", realm_id, customer_ids)

    async def replace_realm_child_customers(
        self, realm_id: str, customer_ids: Sequence[str]
    ) -> Optional[RealmRead]:
        return await self._replace("RealmChildCustomer", realm_id, customer_ids)

    async def disconnect_realm_child_customer(
        self, realm_id: str, customer_id: str
    ) -> Optional[RealmRead]:
        return await self._disconnect("RealmChildCustomer", realm_id, customer_id)

    # ── Edge plumbing ───────────────────────────────────────────────────────

    async def _connect(self, edge_name: str, parent_id: str, child_ids: Sequence[str]):
        async with session_scope(self._sessions) as db:
            return await self._mutator.connect(db, EDGES[edge_name], parent_id, child_ids)

    async def _replace(self, edge_name: str, parent_id: str, child_ids: Sequence[str]):
        async with session_scope(self._sessions) as db:
            return await self._mutator.replace(db, EDGES[edge_name], parent_id, child_ids)

    async def _disconnect(self, edge_name: str, parent_id: str, child_id: str):
        async with session_scope(self._sessions) as db:
            return await self._mutator.disconnect(db, EDGES[edge_name], parent_id, child_id)
