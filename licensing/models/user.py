"""
models/user.py
--------------
User ORM model.

The pass_hash column stores PBKDF2 hashes only. The legacy psw column is
kept for databases that still carry plaintext from an older licensing
system; this provider never writes it except to clear it.

Name lists (roles, cloud_customer_names, job_names, vartree_names,
dashboard_names) are delimited text, see db.base.join_names / split_names.
"""

import uuid
from datetime import datetime
from enum import IntEnum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, LargeBinary, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from licensing.db.base import Base, CreatedMixin
from licensing.models.links import user_customer, user_job, user_realm


class DataLocation(IntEnum):
    Cloud = 0
    Local = 1


class User(Base, CreatedMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    provider_id: Mapped[Optional[str]] = mapped_column(String(128))
    psw: Mapped[Optional[str]] = mapped_column(String(64))
    pass_hash: Mapped[Optional[bytes]] = mapped_column(LargeBinary(512))
    email: Mapped[Optional[str]] = mapped_column(String(128))
    entity_id: Mapped[Optional[str]] = mapped_column(String(16))
    cloud_customer_names: Mapped[Optional[str]] = mapped_column(String(256))
    job_names: Mapped[Optional[str]] = mapped_column(String(256))
    vartree_names: Mapped[Optional[str]] = mapped_column(String(256))
    dashboard_names: Mapped[Optional[str]] = mapped_column(String(256))
    data_location: Mapped[Optional[int]] = mapped_column(Integer)
    sequence: Mapped[Optional[int]] = mapped_column(Integer)
    uid: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, default=uuid.uuid4)
    comment: Mapped[Optional[str]] = mapped_column(String(2000))
    roles: Mapped[Optional[str]] = mapped_column(String(128))
    filter: Mapped[Optional[str]] = mapped_column(String(128))
    login_macs: Mapped[Optional[str]] = mapped_column(String(256))
    login_count: Mapped[Optional[int]] = mapped_column(Integer)
    login_max: Mapped[Optional[int]] = mapped_column(Integer)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    sunset: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    version: Mapped[Optional[str]] = mapped_column(String(32))
    min_version: Mapped[Optional[str]] = mapped_column(String(32))
    is_disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_jobs: Mapped[Optional[int]] = mapped_column(Integer)

    # Relationships
    customers: Mapped[list["Customer"]] = relationship(  # noqa: F821
        "Customer", secondary=user_customer, back_populates="users"
    )
    jobs: Mapped[list["Job"]] = relationship(  # noqa: F821
        "Job", secondary=user_job, back_populates="users"
    )
    realms: Mapped[list["Realm"]] = relationship(  # noqa: F821
        "Realm", secondary=user_realm, back_populates="users"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.name}>"
