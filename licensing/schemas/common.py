"""
schemas/common.py
-----------------
Shared pydantic building blocks.

Snapshot.from_row converts an ORM row into its outbound model. Only column
attributes are read unless deep=True, in which case the relationship fields
named in CHILDREN are converted one level down (children never carry their
own children). Relationships are therefore only touched when the caller has
eager-loaded them.

Naming convention (as elsewhere in schemas/):
  XUpsert  → inbound create-or-update payload
  XRead    → outbound snapshot
  XPick    → lightweight list entry for pickers
"""

from enum import Enum
from typing import Any, ClassVar, Generic, Optional, TypeVar

from pydantic import BaseModel, field_validator
from sqlalchemy import inspect

from licensing.db.base import split_names

_REGISTRY: dict[str, type["Snapshot"]] = {}

T = TypeVar("T")


class Snapshot(BaseModel):
    CHILDREN: ClassVar[dict[str, str]] = {}

    model_config = {"from_attributes": True}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        _REGISTRY[cls.__name__] = cls

    @field_validator("id", mode="before", check_fields=False)
    @classmethod
    def id_to_str(cls, v: Any) -> Any:
        return None if v is None else str(v)

    @classmethod
    def from_row(cls, row: Any, deep: bool = False):
        if row is None:
            return None
        mapper = inspect(row).mapper
        data = {
            attr.key: getattr(row, attr.key)
            for attr in mapper.column_attrs
            if attr.key in cls.model_fields
        }
        if deep:
            for key, child_name in cls.CHILDREN.items():
                child_cls = _REGISTRY[child_name]
                value = getattr(row, key)
                if isinstance(value, list):
                    data[key] = [child_cls.from_row(v) for v in value]
                else:
                    data[key] = child_cls.from_row(value)
        return cls.model_validate(data)


def names_field(v: Any) -> Any:
    """Before-validator body for delimited name list fields."""
    if v is None:
        return []
    if isinstance(v, str):
        return split_names(v)
    return v


class UpsertStatus(str, Enum):
    INSERTED = "Inserted"
    UPDATED = "Updated"
    NOT_FOUND = "NotFound"


class UpsertResult(BaseModel, Generic[T]):
    entity: Optional[T] = None
    status: UpsertStatus
    message: Optional[str] = None
