"""
db/base.py
----------
Declarative base and shared mixins.

CreatedMixin:  Adds the created timestamp every licensing entity carries.
               It is set by the application at insert time (UTC), not by a
               server default, so the re-read after an upsert returns the
               exact value that was written.

Name lists (roles, job names, vartree names ...) are stored as a single
delimited text column. join_names / split_names are the only two places that
know the format.
"""

import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

_NAME_SEPARATORS = re.compile(r"[,; ]+")


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CreatedMixin:
    """Adds the created timestamp column."""

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )


def join_names(names: Optional[Iterable[str]]) -> Optional[str]:
    """Serialise a name list for storage. Empty or missing lists store NULL."""
    if not names:
        return None
    tokens = [n.strip() for n in names if n and n.strip()]
    return " ".join(tokens) if tokens else None


def split_names(text: Optional[str]) -> list[str]:
    """Parse a stored name list. Accepts comma, semicolon or space separators."""
    if not text:
        return []
    return [t for t in _NAME_SEPARATORS.split(text) if t]
