from __future__ import annotations

"""Interfaces for I/O operations.

This module defines the abstract I/O interfaces used by the orchestrator.
Concrete implementations live under ``seriescache.io``.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Protocol, runtime_checkable

from .models import DateRange, Observation, SeriesPoint


@runtime_checkable
class SeriesClient(Protocol):
    """Retrieve observations for one series over a closed date window."""

    async def fetch_observations(
        self, series_id: str, start: date, end: date
    ) -> list[Observation]:
        ...


@runtime_checkable
class BlobStore(Protocol):
    """Named blob storage used by the durable repository."""

    async def exists(self, name: str) -> bool:
        ...

    async def read_all(self, name: str) -> bytes:
        ...

    async def write_all(self, name: str, data: bytes, *, overwrite: bool = True) -> None:
        ...

    async def delete(self, name: str) -> bool:
        ...

    async def list_by_prefix(self, prefix: str) -> list[str]:
        ...


class TimeSeriesRepository(ABC):
    """Cache of daily observations plus the coverage already fetched."""

    @abstractmethod
    async def get_coverage(self, series_id: str) -> list[DateRange]:
        """Return covered ranges for ``series_id`` ordered by start."""

    @abstractmethod
    async def upsert_observations(self, rows: Iterable[Observation]) -> None:
        """Insert or overwrite ``rows`` keyed by ``(series_id, date)``.

        Coverage is not touched.
        """

    @abstractmethod
    async def replace_coverage(
        self, series_id: str, ranges: Iterable[DateRange]
    ) -> None:
        """Replace the whole coverage set of ``series_id`` with ``ranges``.

        Callers are expected to pass already coalesced ranges.
        """

    @abstractmethod
    async def get_series(
        self, series_id: str, start: date, end: date
    ) -> list[SeriesPoint]:
        """Return points inside ``[start, end]`` ascending by date."""

    @abstractmethod
    async def series_ids(self) -> list[str]:
        """Return every series id with coverage or observations."""

    async def aclose(self) -> None:
        """Release resources held by the repository."""
        return None


__all__ = ["BlobStore", "SeriesClient", "TimeSeriesRepository"]
