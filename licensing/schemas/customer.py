"""
schemas/customer.py
-------------------
Pydantic models for Customer upsert, read and pick lists.
"""

from datetime import datetime
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, field_validator

from licensing.models.user import DataLocation
from licensing.schemas.common import Snapshot, names_field
from licensing.schemas.job import JobPick


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=32)
    display_name: Optional[str] = None
    psw: Optional[str] = None
    storage_key: Optional[str] = None
    cloud_customer_names: list[str] = Field(default_factory=list)
    data_location: DataLocation = DataLocation.Cloud
    sequence: Optional[int] = None
    corporation: Optional[str] = None
    comment: Optional[str] = None
    info: Optional[str] = None
    logo: Optional[str] = None
    sign_in_logo: Optional[str] = None
    sign_in_note: Optional[str] = None
    credits: Optional[int] = None
    spent: Optional[int] = None
    sunset: Optional[datetime] = None
    max_jobs: Optional[int] = None
    inactive: bool = False

    @field_validator("cloud_customer_names", mode="before")
    @classmethod
    def parse_names(cls, v: Any) -> Any:
        return names_field(v)

    @field_validator("data_location", mode="before")
    @classmethod
    def default_location(cls, v: Any) -> Any:
        return DataLocation.Cloud if v is None else v


class CustomerUpsert(CustomerBase):
    """Create (id=None) or update (id set) a customer."""
    id: Optional[str] = None


class CustomerRead(CustomerBase, Snapshot):
    CHILDREN: ClassVar[dict[str, str]] = {
        "jobs": "JobRead",
        "users": "UserRead",
        "realms": "RealmRead",
    }

    id: str
    created: datetime
    jobs: Optional[list["JobRead"]] = None  # noqa: F821
    users: Optional[list["UserRead"]] = None  # noqa: F821
    realms: Optional[list["RealmRead"]] = None  # noqa: F821


class CustomerPick(BaseModel):
    id: str
    name: str
    display_name: Optional[str] = None
    is_inactive: bool = False
    jobs: list[JobPick] = Field(default_factory=list)
