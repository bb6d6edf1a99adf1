"""
schemas/job.py
--------------
Pydantic models for Job upsert, read and pick lists.

JobUpsert.customer_id is honoured on insert only. Once a job exists its
customer is fixed; an update carrying a different customer_id is ignored.
"""

from datetime import datetime
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, field_validator

from licensing.models.user import DataLocation
from licensing.schemas.common import Snapshot, names_field


class JobBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    display_name: Optional[str] = None
    description: Optional[str] = None
    cases: Optional[int] = None
    logo: Optional[str] = None
    info: Optional[str] = None
    url: Optional[str] = None
    vartree_names: list[str] = Field(default_factory=list)
    data_location: DataLocation = DataLocation.Cloud
    sequence: Optional[int] = None
    inactive: bool = False
    is_mobile: bool = False
    dashboards_first: bool = False
    last_update: Optional[datetime] = None

    @field_validator("vartree_names", mode="before")
    @classmethod
    def parse_names(cls, v: Any) -> Any:
        return names_field(v)

    @field_validator("data_location", mode="before")
    @classmethod
    def default_location(cls, v: Any) -> Any:
        return DataLocation.Cloud if v is None else v


class JobUpsert(JobBase):
    """Create (id=None) or update (id set) a job."""
    id: Optional[str] = None
    customer_id: Optional[str] = None


class JobRead(JobBase, Snapshot):
    CHILDREN: ClassVar[dict[str, str]] = {
        "users": "UserRead",
        "customer": "CustomerRead",
    }

    id: str
    created: datetime
    customer_id: Optional[str] = None
    users: Optional[list["UserRead"]] = None  # noqa: F821
    customer: Optional["CustomerRead"] = None  # noqa: F821

    @field_validator("customer_id", mode="before")
    @classmethod
    def customer_id_to_str(cls, v: Any) -> Any:
        return None if v is None else str(v)


class JobPick(BaseModel):
    id: str
    name: str
    display_name: Optional[str] = None
    is_inactive: bool = False
