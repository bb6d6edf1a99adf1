"""
schemas/realm.py
----------------
Pydantic models for Realm upsert and read.
"""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, Field, field_validator

from licensing.schemas.common import Snapshot


class RealmBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    policy: Optional[str] = None
    inactive: bool = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class RealmUpsert(RealmBase):
    """Create (id=None) or update (id set) a realm."""
    id: Optional[str] = None


class RealmRead(RealmBase, Snapshot):
    CHILDREN: ClassVar[dict[str, str]] = {
        "users": "UserRead",
        "customers": "CustomerRead",
    }

    id: str
    created: datetime
    users: Optional[list["UserRead"]] = None  # noqa: F821
    customers: Optional[list["CustomerRead"]] = None  # noqa: F821
