"""
storage/base.py
---------------
Object-storage collaborator interface.

A customer's storage_key is an opaque connection descriptor. Given a key and
a container name, an ObjectStore lists the container's top-level entries
page by page and can probe whether the key grants access at all.
Connectivity and credential failures are raised as StorageError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator

from licensing.core.errors import ExternalStorageUnavailableError


@dataclass(frozen=True)
class StorageEntry:
    name: str
    is_blob: bool  # False for a virtual folder (prefix)


class StorageError(ExternalStorageUnavailableError):
    """Object store request failed (bad key, missing container, network)."""

    def __init__(self, message: str, *, container: str | None = None) -> None:
        super().__init__(message, kind="Storage", identifier=container)
        self.container = container


def parse_storage_key(storage_key: str) -> dict[str, str]:
    """
    Split a ``Key=Value;Key=Value`` connection descriptor into a dict.
    Keys are matched case-insensitively and returned lower-cased.
    """
    parts: dict[str, str] = {}
    for segment in (storage_key or "").split(";"):
        if not segment.strip():
            continue
        key, sep, value = segment.partition("=")
        if not sep:
            raise StorageError("Storage key segment is not in Key=Value form")
        parts[key.strip().lower()] = value.strip()
    return parts


class ObjectStore(ABC):

    @abstractmethod
    def list_entries(
        self, storage_key: str, container: str
    ) -> AsyncIterator[list[StorageEntry]]:
        """Yield pages of top-level entries in ``container``."""

    @abstractmethod
    async def describe_account(self, storage_key: str) -> str:
        """Return a short description of the account the key opens."""
