"""
services/storage_probe.py
-------------------------
Discovers the vartrees that actually exist for a job.

A job's vartrees live as top-level blobs named ``<vartree>.vtr`` in the
container named after the job, inside the object store opened by the owning
customer's storage key. Scanning is the only place licensing reaches outside
its own database, so it is isolated: a probe never raises. Any failure is
recorded as accessible=False with no discovered names, so one customer's
outage cannot spoil the licence for any other customer or job.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable, Optional

from licensing.core.config import settings
from licensing.core.logging import get_logger
from licensing.schemas.licence import LicenceJob
from licensing.storage.base import ObjectStore, StorageError

logger = get_logger(__name__)


@dataclass
class ProbeResult:
    names: list[str] = field(default_factory=list)
    accessible: bool = False


class StorageProbe:

    def __init__(
        self,
        store: ObjectStore,
        extension: Optional[str] = None,
        concurrency: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._store = store
        self._extension = (extension or settings.VARTREE_EXTENSION).lower()
        self._concurrency = concurrency or settings.STORAGE_PROBE_CONCURRENCY
        self._timeout = timeout_seconds or settings.STORAGE_PROBE_TIMEOUT_SECONDS

    async def _list_vartrees(self, storage_key: str, job_name: str) -> list[str]:
        names: list[str] = []
        async for page in self._store.list_entries(storage_key, job_name):
            for entry in page:
                if not entry.is_blob:
                    continue
                path = PurePosixPath(entry.name)
                if path.suffix.lower() == self._extension:
                    names.append(path.stem)
        return names

    async def scan_job(self, storage_key: str, job_name: str) -> ProbeResult:
        try:
            names = await asyncio.wait_for(
                self._list_vartrees(storage_key, job_name), timeout=self._timeout
            )
        except StorageError as exc:
            logger.warning("Job container scan failed", job=job_name, error=exc.message)
            return ProbeResult()
        except asyncio.TimeoutError:
            logger.warning("Job container scan timed out", job=job_name, timeout_s=self._timeout)
            return ProbeResult()
        except Exception as exc:
            # Isolation boundary: unexpected store failures are absorbed too.
            logger.warning("Job container scan error", job=job_name, error=repr(exc))
            return ProbeResult()
        return ProbeResult(names=names, accessible=True)

    async def scan_jobs(self, targets: Iterable[tuple[str, LicenceJob]]) -> None:
        """
        Probe every (storage_key, job) pair concurrently and write the result
        into each LicenceJob in place. Returns once every probe has finished.
        """
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _one(storage_key: str, job: LicenceJob) -> None:
            async with semaphore:
                result = await self.scan_job(storage_key, job.name)
            job.real_cloud_vartree_names = result.names
            job.is_accessible = result.accessible

        await asyncio.gather(*(_one(key, job) for key, job in targets))
