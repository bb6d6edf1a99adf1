"""
schemas/user.py
---------------
Pydantic models for User upsert, read and pick lists.

Security note:
  - pass_hash and the legacy psw column are NEVER included in any
    outbound schema.
  - A password change is requested explicitly with SetPassword. Leaving
    UserUpsert.password as None means "leave the password unchanged";
    SetPassword(plaintext="") deliberately sets an empty password.
"""

from datetime import datetime
from typing import Any, ClassVar, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from licensing.models.user import DataLocation
from licensing.schemas.common import Snapshot, names_field


class SetPassword(BaseModel):
    plaintext: str = Field(..., max_length=128)


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    provider_id: Optional[str] = None
    email: Optional[str] = None
    entity_id: Optional[str] = None
    cloud_customer_names: list[str] = Field(default_factory=list)
    job_names: list[str] = Field(default_factory=list)
    vartree_names: list[str] = Field(default_factory=list)
    dashboard_names: list[str] = Field(default_factory=list)
    data_location: DataLocation = DataLocation.Cloud
    sequence: Optional[int] = None
    comment: Optional[str] = None
    roles: list[str] = Field(default_factory=list)
    filter: Optional[str] = None
    login_macs: Optional[str] = None
    login_count: Optional[int] = None
    login_max: Optional[int] = None
    last_login: Optional[datetime] = None
    sunset: Optional[datetime] = None
    max_jobs: Optional[int] = None
    version: Optional[str] = None
    min_version: Optional[str] = None
    is_disabled: bool = False

    @field_validator(
        "cloud_customer_names",
        "job_names",
        "vartree_names",
        "dashboard_names",
        "roles",
        mode="before",
    )
    @classmethod
    def parse_names(cls, v: Any) -> Any:
        return names_field(v)

    @field_validator("data_location", mode="before")
    @classmethod
    def default_location(cls, v: Any) -> Any:
        return DataLocation.Cloud if v is None else v


class UserUpsert(UserBase):
    """Create (id=None) or update (id set) a user."""
    id: Optional[str] = None
    password: Optional[SetPassword] = None


class UserRead(UserBase, Snapshot):
    CHILDREN: ClassVar[dict[str, str]] = {
        "customers": "CustomerRead",
        "jobs": "JobRead",
        "realms": "RealmRead",
    }

    id: str
    uid: UUID
    created: datetime
    customers: Optional[list["CustomerRead"]] = None  # noqa: F821
    jobs: Optional[list["JobRead"]] = None  # noqa: F821
    realms: Optional[list["RealmRead"]] = None  # noqa: F821


class UserPick(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    is_inactive: bool = False
    sunset: Optional[datetime] = None
    roles: list[str] = Field(default_factory=list)
