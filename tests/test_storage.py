"""Tests for the object stores and the vartree storage probe."""

from __future__ import annotations

import asyncio
import threading
import time
from types import SimpleNamespace

import pytest
from botocore.exceptions import ClientError

from licensing.schemas import LicenceJob
from licensing.services.licence_service import merge_by_id
from licensing.services.storage_probe import StorageProbe
from licensing.storage.base import StorageError, parse_storage_key
from licensing.storage.memory import InMemoryObjectStore
from licensing.storage.s3 import S3ObjectStore, client_kwargs

S3_KEY = "AccessKeyId=AK;SecretAccessKey=SK;Region=eu-west-1;EndpointUrl=http://minio:9000"


class _SlowStore(InMemoryObjectStore):
    async def list_entries(self, storage_key, container):
        await asyncio.sleep(5)
        yield []


class _BrokenStore(InMemoryObjectStore):
    async def list_entries(self, storage_key, container):
        raise RuntimeError("socket closed")
        yield []  # pragma: no cover


class _Paginator:
    def __init__(self, pages, error=None):
        self._pages = pages
        self._error = error
        self.calls = []

    def paginate(self, **kwargs):
        self.calls.append(kwargs)
        for page in self._pages:
            yield page
        if self._error is not None:
            raise self._error


class _DummyS3Client:
    def __init__(self, pages=(), error=None):
        self.paginator = _Paginator(list(pages), error)

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        return self.paginator

    def list_buckets(self):
        return {"Owner": {"DisplayName": "acme"}, "Buckets": [{"Name": "a"}, {"Name": "b"}]}


def _client_error(code="NoSuchBucket"):
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "ListObjectsV2")


class TestStorageKey:

    def test_parse_is_case_insensitive(self):
        parts = parse_storage_key("accesskeyid=AK; SecretAccessKey = SK ;")
        assert parts == {"accesskeyid": "AK", "secretaccesskey": "SK"}

    def test_malformed_segment(self):
        with pytest.raises(StorageError):
            parse_storage_key("AccessKeyId=AK;garbage")

    def test_client_kwargs(self):
        assert client_kwargs(S3_KEY) == {
            "aws_access_key_id": "AK",
            "aws_secret_access_key": "SK",
            "region_name": "eu-west-1",
            "endpoint_url": "http://minio:9000",
        }

    def test_client_kwargs_requires_credentials(self):
        with pytest.raises(StorageError):
            client_kwargs("Region=eu-west-1")


class TestS3ObjectStore:

    @pytest.mark.asyncio
    async def test_lists_blobs_and_prefixes_per_page(self):
        client = _DummyS3Client(
            pages=[
                {"Contents": [{"Key": "Main.vtr"}], "CommonPrefixes": [{"Prefix": "old/"}]},
                {"Contents": [{"Key": "Extra.vtr"}]},
            ]
        )
        store = S3ObjectStore(client_factory=lambda kwargs: client)
        pages = [page async for page in store.list_entries(S3_KEY, "survey")]
        assert [[(e.name, e.is_blob) for e in page] for page in pages] == [
            [("Main.vtr", True), ("old/", False)],
            [("Extra.vtr", True)],
        ]
        assert client.paginator.calls == [{"Bucket": "survey", "Delimiter": "/"}]

    @pytest.mark.asyncio
    async def test_client_error_becomes_storage_error(self):
        client = _DummyS3Client(error=_client_error())
        store = S3ObjectStore(client_factory=lambda kwargs: client)
        with pytest.raises(StorageError) as info:
            async for _ in store.list_entries(S3_KEY, "survey"):
                pass
        assert info.value.container == "survey"

    @pytest.mark.asyncio
    async def test_describe_account(self):
        store = S3ObjectStore(client_factory=lambda kwargs: _DummyS3Client())
        assert await store.describe_account(S3_KEY) == "acme (2 buckets)"

    @pytest.mark.asyncio
    async def test_describe_account_bad_key(self):
        store = S3ObjectStore(client_factory=lambda kwargs: _DummyS3Client())
        with pytest.raises(StorageError):
            await store.describe_account("nonsense")

    @pytest.mark.asyncio
    async def test_client_built_once_per_key(self):
        built = []

        def factory(kwargs):
            built.append(kwargs["aws_access_key_id"])
            return _DummyS3Client(pages=[{"Contents": [{"Key": "Main.vtr"}]}])

        store = S3ObjectStore(client_factory=factory)
        for container in ("one", "two"):
            async for _ in store.list_entries(S3_KEY, container):
                pass
        await store.describe_account(S3_KEY)
        assert built == ["AK"]

    @pytest.mark.asyncio
    async def test_slow_client_setup_runs_in_parallel(self):
        loop_thread = threading.get_ident()
        setup_threads = []

        def slow_factory(kwargs):
            setup_threads.append(threading.get_ident())
            time.sleep(0.2)
            return _DummyS3Client(pages=[{"Contents": [{"Key": "Main.vtr"}]}])

        probe = StorageProbe(S3ObjectStore(client_factory=slow_factory))
        jobs = [LicenceJob(id=str(n), name=f"job-{n}") for n in range(5)]
        targets = [(f"AccessKeyId=AK{n};SecretAccessKey=SK", job) for n, job in enumerate(jobs)]

        started = time.perf_counter()
        await probe.scan_jobs(targets)
        elapsed = time.perf_counter() - started

        assert all(job.real_cloud_vartree_names == ["Main"] for job in jobs)
        assert loop_thread not in setup_threads
        # Five 0.2s setups overlap instead of adding up.
        assert elapsed < 0.6


class TestInMemoryObjectStore:

    @pytest.mark.asyncio
    async def test_nested_keys_show_as_prefixes(self):
        store = InMemoryObjectStore()
        store.put("k", "box", "a.vtr", "dir/b.vtr", "dir/c.vtr")
        [page] = [p async for p in store.list_entries("k", "box")]
        assert [(e.name, e.is_blob) for e in page] == [("a.vtr", True), ("dir/", False)]

    @pytest.mark.asyncio
    async def test_unknown_container(self):
        store = InMemoryObjectStore()
        store.add_account("k")
        with pytest.raises(StorageError):
            async for _ in store.list_entries("k", "missing"):
                pass


class TestStorageProbe:

    @pytest.mark.asyncio
    async def test_follows_every_page_and_filters_extension(self):
        store = InMemoryObjectStore(page_size=2)
        store.put("k", "survey", "One.vtr", "readme.md", "Two.VTR", "sub/Three.vtr", "Four.vtr")
        result = await StorageProbe(store).scan_job("k", "survey")
        assert result.accessible is True
        assert result.names == ["One", "Two", "Four"]

    @pytest.mark.asyncio
    async def test_custom_extension(self):
        store = InMemoryObjectStore()
        store.put("k", "survey", "One.vtr", "Two.cub")
        result = await StorageProbe(store, extension=".cub").scan_job("k", "survey")
        assert result.names == ["Two"]

    @pytest.mark.asyncio
    async def test_bad_key_is_inaccessible(self):
        result = await StorageProbe(InMemoryObjectStore()).scan_job("nope", "survey")
        assert (result.accessible, result.names) == (False, [])

    @pytest.mark.asyncio
    async def test_timeout_is_inaccessible(self):
        result = await StorageProbe(_SlowStore(), timeout_seconds=0.05).scan_job("k", "survey")
        assert (result.accessible, result.names) == (False, [])

    @pytest.mark.asyncio
    async def test_unexpected_error_is_inaccessible(self):
        result = await StorageProbe(_BrokenStore()).scan_job("k", "survey")
        assert (result.accessible, result.names) == (False, [])

    @pytest.mark.asyncio
    async def test_scan_jobs_fills_in_place(self):
        store = InMemoryObjectStore()
        store.put("k", "a", "X.vtr")
        jobs = [LicenceJob(id=str(n), name=name) for n, name in enumerate(["a", "b"])]
        await StorageProbe(store, concurrency=1).scan_jobs([("k", jobs[0]), ("k", jobs[1])])
        assert (jobs[0].real_cloud_vartree_names, jobs[0].is_accessible) == (["X"], True)
        assert (jobs[1].real_cloud_vartree_names, jobs[1].is_accessible) == ([], False)


def test_merge_by_id_keeps_first_seen():
    a, b, a_again = SimpleNamespace(id=1, n="a"), SimpleNamespace(id=2, n="b"), SimpleNamespace(id=1, n="a2")
    merged = merge_by_id([a, b], [a_again])
    assert list(merged) == [1, 2]
    assert merged[1] is a
