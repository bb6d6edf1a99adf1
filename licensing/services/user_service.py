"""
services/user_service.py
------------------------
Business logic for user authentication, account maintenance and CRUD.

Authentication flow:
  1. Load the user deep (customers→jobs, jobs→customer, realms).
  2. Check the password with security.password_accepted. A NULL stored
     hash accepts any password: legacy behaviour, kept on purpose.
  3. Bump login_count (NULL → 1) and stamp last_login, then commit.
  4. Hand the row to LicenceService to build the licence snapshot.

Service layer is responsible for queries and business rules. It raises
licensing errors and returns snapshots; it never deals with transport.
"""

import uuid
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from licensing.core.errors import (
    IdentityNotFoundError,
    PasswordIncorrectError,
    parse_id,
)
from licensing.core.logging import get_logger
from licensing.core.security import hash_password, password_accepted, verify_password
from licensing.db.base import split_names, utcnow
from licensing.models import Realm, User
from licensing.schemas import UpsertResult, UserPick, UserRead, UserUpsert
from licensing.schemas.user import UserBase
from licensing.services.licence_service import LicenceService
from licensing.services.snapshots import child_options, to_snapshot
from licensing.services.upsert import upsert_row

logger = get_logger(__name__)


def _realm_filter(realm_ids: Sequence[str]):
    rids = [parse_id(r, "Realm") for r in realm_ids]
    if not rids:
        return None
    return User.realms.any(Realm.id.in_(rids))


def _record_login(user: User) -> None:
    user.login_count = 1 if user.login_count is None else user.login_count + 1
    user.last_login = utcnow()


def _apply_user_columns(row: User, data: UserUpsert, inserting: bool) -> None:
    if inserting:
        row.uid = uuid.uuid4()
    if data.password is not None:
        # Only the hash is stored; plaintext is discarded here.
        row.pass_hash = hash_password(data.password.plaintext, row.uid)
        row.psw = None


class UserService:

    # ── Authentication ──────────────────────────────────────────────────────

    @staticmethod
    async def _deep_user(db: AsyncSession, *criteria) -> Optional[User]:
        result = await db.execute(
            select(User).options(*LicenceService.deep_load_options()).where(*criteria)
        )
        return result.scalars().first()

    @staticmethod
    async def authenticate_id(
        db: AsyncSession, user_id: str, password: Optional[str]
    ) -> User:
        uid = parse_id(user_id, "User")
        user = await UserService._deep_user(db, User.id == uid)
        if user is None:
            raise IdentityNotFoundError(
                f"User Id '{user_id}' does not exist", kind="User", identifier=user_id
            )
        if not password_accepted(password, user.uid, user.pass_hash):
            logger.warning("Authentication failed", user_id=user.id)
            raise PasswordIncorrectError(
                f"User Id '{user_id}' incorrect password", kind="User", identifier=user_id
            )
        _record_login(user)
        await db.commit()
        logger.info("User authenticated", user_id=user.id, login_count=user.login_count)
        return user

    @staticmethod
    async def authenticate_name(
        db: AsyncSession, user_name: str, password: Optional[str]
    ) -> User:
        """User name lookup is case-insensitive."""
        user = await UserService._deep_user(
            db, func.lower(User.name) == user_name.lower()
        )
        if user is None:
            raise IdentityNotFoundError(
                f"User Name '{user_name}' does not exist", kind="User", identifier=user_name
            )
        if not password_accepted(password, user.uid, user.pass_hash):
            logger.warning("Authentication failed", user_id=user.id)
            raise PasswordIncorrectError(
                f"User Name '{user_name}' incorrect password", kind="User", identifier=user_name
            )
        _record_login(user)
        await db.commit()
        logger.info("User authenticated", user_id=user.id, login_count=user.login_count)
        return user

    @staticmethod
    async def guest(db: AsyncSession, guest_name: str) -> User:
        user = await UserService._deep_user(db, User.name == guest_name)
        if user is None:
            raise IdentityNotFoundError(
                f"Free or guest account with Name {guest_name} does not exist",
                kind="User",
                identifier=guest_name,
            )
        _record_login(user)
        await db.commit()
        return user

    @staticmethod
    async def change_password(
        db: AsyncSession,
        user_id: str,
        old_password: Optional[str],
        new_password: str,
    ) -> int:
        """
        Replace the user's password hash.

        When old_password is given it must match the stored hash (a user with
        no stored hash cannot match). Passing None skips verification.
        The legacy plaintext column is cleared.
        """
        uid = parse_id(user_id, "User")
        user = await db.get(User, uid)
        if user is None:
            raise IdentityNotFoundError(
                f"User Id '{user_id}' does not exist", kind="User", identifier=user_id
            )
        if old_password is not None:
            if user.pass_hash is None or not verify_password(old_password, user.uid, user.pass_hash):
                raise PasswordIncorrectError(
                    f"User Id '{user_id}' incorrect old password",
                    kind="User",
                    identifier=user_id,
                )
        user.pass_hash = hash_password(new_password, user.uid)
        user.psw = None
        await db.commit()
        logger.info("Password changed", user_id=user.id)
        return 1

    @staticmethod
    async def update_account(
        db: AsyncSession,
        user_id: str,
        user_name: str,
        comment: Optional[str],
        email: Optional[str],
    ) -> int:
        uid = parse_id(user_id, "User")
        user = await db.get(User, uid)
        if user is None:
            raise IdentityNotFoundError(
                f"User Id '{user_id}' does not exist", kind="User", identifier=user_id
            )
        user.name = user_name
        user.comment = comment
        user.email = email
        await db.commit()
        return 1

    # ── Reads ───────────────────────────────────────────────────────────────

    @staticmethod
    async def read(db: AsyncSession, user_id: str) -> Optional[UserRead]:
        uid = parse_id(user_id, "User")
        user = await db.scalar(
            select(User).options(*child_options(User)).where(User.id == uid)
        )
        return to_snapshot(user, deep=True) if user is not None else None

    @staticmethod
    async def read_by_name(db: AsyncSession, user_name: str) -> list[UserRead]:
        result = await db.scalars(
            select(User).options(*child_options(User)).where(User.name == user_name)
        )
        return [to_snapshot(u, deep=True) for u in result.all()]

    @staticmethod
    async def list_users(db: AsyncSession, realm_ids: Sequence[str] = ()) -> list[UserRead]:
        """All users, or those in any of the given realms. Summaries only."""
        query = select(User).order_by(User.id)
        realm_filter = _realm_filter(realm_ids)
        if realm_filter is not None:
            query = query.where(realm_filter)
        result = await db.scalars(query)
        return [to_snapshot(u) for u in result.all()]

    @staticmethod
    async def list_picks(db: AsyncSession, realm_ids: Sequence[str] = ()) -> list[UserPick]:
        query = select(User).order_by(User.name)
        realm_filter = _realm_filter(realm_ids)
        if realm_filter is not None:
            query = query.where(realm_filter)
        result = await db.scalars(query)
        return [
            UserPick(
                id=str(u.id),
                name=u.name,
                email=u.email,
                is_inactive=u.is_disabled,
                sunset=u.sunset,
                roles=split_names(u.roles),
            )
            for u in result.all()
        ]

    # ── Writes ──────────────────────────────────────────────────────────────

    @staticmethod
    async def upsert(db: AsyncSession, data: UserUpsert) -> UpsertResult:
        return await upsert_row(db, User, data, UserBase, hook=_apply_user_columns)

    @staticmethod
    async def delete(db: AsyncSession, user_id: str) -> int:
        """Clear every edge of the user, then delete the row."""
        uid = parse_id(user_id, "User")
        user = await db.scalar(
            select(User)
            .options(
                selectinload(User.customers),
                selectinload(User.jobs),
                selectinload(User.realms),
            )
            .where(User.id == uid)
        )
        if user is None:
            return 0
        user.customers.clear()
        user.jobs.clear()
        user.realms.clear()
        await db.flush()
        await db.delete(user)
        await db.commit()
        logger.info("User deleted", user_id=uid)
        return 1

    @staticmethod
    async def validate(db: AsyncSession, user_id: str) -> list[str]:
        uid = parse_id(user_id, "User")
        user = await db.get(User, uid)
        if user is None:
            return [f"User Id {user_id} is not in the licensing database."]
        return []
