from __future__ import annotations

from typing import AsyncIterator

from licensing.storage.base import ObjectStore, StorageEntry, StorageError


class InMemoryObjectStore(ObjectStore):
    """
    Dictionary-backed object store for local development and tests.

    Accounts are registered under their storage key; each account maps
    container names to the object keys it holds. An unknown key or container
    raises StorageError like a real store would.
    """

    def __init__(self, page_size: int = 1000) -> None:
        # Small page sizes let tests exercise multi-page listing.
        self._accounts: dict[str, dict[str, list[str]]] = {}
        self._page_size = max(1, page_size)

    def add_account(self, storage_key: str) -> None:
        self._accounts.setdefault(storage_key, {})

    def put(self, storage_key: str, container: str, *names: str) -> None:
        self.add_account(storage_key)
        self._accounts[storage_key].setdefault(container, []).extend(names)

    def _account(self, storage_key: str) -> dict[str, list[str]]:
        account = self._accounts.get(storage_key)
        if account is None:
            raise StorageError("Storage key was rejected")
        return account

    async def list_entries(
        self, storage_key: str, container: str
    ) -> AsyncIterator[list[StorageEntry]]:
        account = self._account(storage_key)
        if container not in account:
            raise StorageError(f"Container '{container}' does not exist", container=container)

        top: list[StorageEntry] = []
        seen_prefixes: set[str] = set()
        for key in account[container]:
            head, sep, _ = key.partition("/")
            if sep:
                if head not in seen_prefixes:
                    seen_prefixes.add(head)
                    top.append(StorageEntry(name=f"{head}/", is_blob=False))
            else:
                top.append(StorageEntry(name=key, is_blob=True))

        for start in range(0, len(top), self._page_size):
            yield top[start:start + self._page_size]

    async def describe_account(self, storage_key: str) -> str:
        account = self._account(storage_key)
        return f"in-memory ({len(account)} containers)"
