"""Shared fixtures for licensing tests."""

from __future__ import annotations

import pytest
import pytest_asyncio

from licensing.models import Base
from licensing.provider import LicensingProvider
from licensing.storage.memory import InMemoryObjectStore


@pytest.fixture
def store() -> InMemoryObjectStore:
    """Object store with small pages so listings span several pages."""
    return InMemoryObjectStore(page_size=2)


@pytest_asyncio.fixture
async def provider(store):
    """Provider over a fresh in-memory SQLite database."""
    p = LicensingProvider("sqlite+aiosqlite://", product_key="TEST-KEY", object_store=store)
    async with p.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield p
    await p.dispose()


@pytest.fixture
def trace(provider) -> list[str]:
    """Collects provider log stream messages."""
    messages: list[str] = []
    provider.add_log_listener(messages.append)
    return messages
