from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from licensing.core.logging import get_logger
from licensing.storage.base import ObjectStore, StorageEntry, StorageError, parse_storage_key

logger = get_logger(__name__)

_KEY_TO_CLIENT_ARG = {
    "accesskeyid": "aws_access_key_id",
    "secretaccesskey": "aws_secret_access_key",
    "sessiontoken": "aws_session_token",
    "region": "region_name",
    "endpointurl": "endpoint_url",
}


def client_kwargs(storage_key: str) -> dict[str, str]:
    # Unknown segments are ignored so keys can carry extra descriptive fields.
    parts = parse_storage_key(storage_key)
    kwargs = {arg: parts[key] for key, arg in _KEY_TO_CLIENT_ARG.items() if parts.get(key)}
    if "aws_access_key_id" not in kwargs or "aws_secret_access_key" not in kwargs:
        raise StorageError("Storage key must define AccessKeyId and SecretAccessKey")
    return kwargs


def _default_client_factory(kwargs: dict[str, str]) -> Any:
    # Runs in a worker thread; the default boto3 session is not thread-safe.
    return boto3.session.Session().client("s3", **kwargs)


class S3ObjectStore(ObjectStore):
    """
    S3-compatible object store. A job's container is the bucket named after
    the job; top-level entries are listed with Delimiter="/" so folders come
    back as common prefixes rather than every nested key.

    One client is built per storage key, off the event loop, and reused by
    every later listing under that key.
    """

    def __init__(self, client_factory: Callable[[dict[str, str]], Any] | None = None) -> None:
        self._client_factory = client_factory or _default_client_factory
        self._clients: dict[str, Any] = {}
        self._client_locks: dict[str, asyncio.Lock] = {}

    async def _get_client(self, storage_key: str) -> Any:
        client = self._clients.get(storage_key)
        if client is not None:
            return client
        kwargs = client_kwargs(storage_key)
        lock = self._client_locks.setdefault(storage_key, asyncio.Lock())
        async with lock:
            client = self._clients.get(storage_key)
            if client is None:
                client = await asyncio.to_thread(self._client_factory, kwargs)
                self._clients[storage_key] = client
        return client

    async def list_entries(
        self, storage_key: str, container: str
    ) -> AsyncIterator[list[StorageEntry]]:
        try:
            client = await self._get_client(storage_key)
            paginator = client.get_paginator("list_objects_v2")
            pages = iter(paginator.paginate(Bucket=container, Delimiter="/"))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Cannot open container '{container}': {exc}", container=container) from exc

        while True:
            try:
                page = await asyncio.to_thread(next, pages, None)
            except (BotoCoreError, ClientError) as exc:
                raise StorageError(f"Listing container '{container}' failed: {exc}", container=container) from exc
            if page is None:
                return
            entries = [StorageEntry(name=o["Key"], is_blob=True) for o in page.get("Contents", [])]
            entries.extend(
                StorageEntry(name=p["Prefix"], is_blob=False) for p in page.get("CommonPrefixes", [])
            )
            yield entries

    async def describe_account(self, storage_key: str) -> str:
        try:
            client = await self._get_client(storage_key)
            response = await asyncio.to_thread(client.list_buckets)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Storage account probe failed: {exc}") from exc
        owner = response.get("Owner", {})
        label = owner.get("DisplayName") or owner.get("ID") or "unknown owner"
        return f"{label} ({len(response.get('Buckets', []))} buckets)"
