from __future__ import annotations

"""In-memory :class:`TimeSeriesRepository` for tests and ephemeral runs."""

from datetime import date
from decimal import Decimal
from typing import Iterable

from seriescache.runtime.data_io import TimeSeriesRepository
from seriescache.runtime.models import DateRange, Observation, SeriesPoint, as_date


class InMemoryTimeSeriesRepository(TimeSeriesRepository):
    """Keep observations and coverage in process memory.

    None of the operations suspend between reading and writing their state,
    so concurrent coroutines on one event loop cannot interleave inside them.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[date, Decimal | None]] = {}
        self._coverage: dict[str, list[DateRange]] = {}

    async def get_coverage(self, series_id: str) -> list[DateRange]:
        return list(self._coverage.get(series_id, []))

    async def upsert_observations(self, rows: Iterable[Observation]) -> None:
        for row in rows:
            self._data.setdefault(row.series_id, {})[as_date(row.date)] = row.value

    async def replace_coverage(
        self, series_id: str, ranges: Iterable[DateRange]
    ) -> None:
        self._coverage[series_id] = sorted(
            (r.normalize() for r in ranges), key=lambda r: (r.start, r.end)
        )

    async def get_series(
        self, series_id: str, start: date, end: date
    ) -> list[SeriesPoint]:
        window = DateRange.of(start, end).normalize()
        table = self._data.get(series_id, {})
        return [
            SeriesPoint(day, table[day]) for day in sorted(table) if window.contains(day)
        ]

    async def series_ids(self) -> list[str]:
        return sorted(set(self._data) | set(self._coverage))


__all__ = ["InMemoryTimeSeriesRepository"]
