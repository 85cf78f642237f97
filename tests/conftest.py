"""Test configuration and shared fixtures."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest
import yaml

from seriescache.foundation.exceptions import SeriesFetchError
from seriescache.io.blobstore import LocalBlobStore
from seriescache.io.csv_repository import CsvTimeSeriesRepository
from seriescache.io.memory_repository import InMemoryTimeSeriesRepository
from seriescache.runtime import configuration
from seriescache.runtime import metrics as cache_metrics
from seriescache.runtime.data_io import TimeSeriesRepository
from seriescache.runtime.models import ONE_DAY, Observation


class RecordingClient:
    """Series client returning one observation per day and logging requests."""

    def __init__(self, *, fail_on: set[tuple[date, date]] | None = None) -> None:
        self.requests: list[tuple[str, date, date]] = []
        self.fail_on = fail_on or set()

    async def fetch_observations(
        self, series_id: str, start: date, end: date
    ) -> list[Observation]:
        self.requests.append((series_id, start, end))
        if (start, end) in self.fail_on:
            raise SeriesFetchError(series_id, start, end, reason="boom", status_code=503)
        rows = []
        day = start
        while day <= end:
            rows.append(Observation(series_id, day, Decimal(day.day)))
            day += ONE_DAY
        return rows


class CountingStore:
    """Blob store wrapper that records every call."""

    def __init__(self, inner: LocalBlobStore, *, fail_writes: bool = False) -> None:
        self.inner = inner
        self.fail_writes = fail_writes
        self.reads: list[str] = []
        self.writes: list[str] = []
        self.listings = 0

    async def exists(self, name):
        return await self.inner.exists(name)

    async def read_all(self, name):
        self.reads.append(name)
        await asyncio.sleep(0)
        return await self.inner.read_all(name)

    async def write_all(self, name, data, *, overwrite=True):
        if self.fail_writes:
            raise OSError("disk full")
        self.writes.append(name)
        await self.inner.write_all(name, data, overwrite=overwrite)

    async def delete(self, name):
        return await self.inner.delete(name)

    async def list_by_prefix(self, prefix):
        self.listings += 1
        await asyncio.sleep(0)
        return await self.inner.list_by_prefix(prefix)


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def memory_repository() -> InMemoryTimeSeriesRepository:
    return InMemoryTimeSeriesRepository()


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "store")


@pytest.fixture
def counting_store(blob_store) -> CountingStore:
    return CountingStore(blob_store)


@pytest.fixture(params=("memory", "csv"), ids=("memory", "csv"))
def repository(request, counting_store) -> TimeSeriesRepository:
    """Each repository implementation; the CSV one writes through ``counting_store``."""
    if request.param == "memory":
        return InMemoryTimeSeriesRepository()
    return CsvTimeSeriesRepository(counting_store)


@pytest.fixture(autouse=True)
def _reset_cache_metrics():
    cache_metrics.reset_metrics()
    yield
    cache_metrics.reset_metrics()


@pytest.fixture
def configure_cache(tmp_path, monkeypatch):
    def _apply(data: dict, *, filename: str = "seriescache.yml") -> str:
        cfg_path = tmp_path / filename
        cfg_path.write_text(yaml.safe_dump(data))
        monkeypatch.chdir(tmp_path)
        configuration.reset_config_cache()
        return str(cfg_path)

    try:
        yield _apply
    finally:
        configuration.reset_config_cache()
        configuration.set_config_override(None)
