from __future__ import annotations

"""Durable :class:`TimeSeriesRepository` persisted as CSV blobs.

Layout inside the :class:`~seriescache.runtime.data_io.BlobStore`:

* ``obs-<series>.csv``: one file per series, rows ``SeriesId,Date,Value``
  (``Value`` empty for a known-missing day);
* ``coverage.csv``: all series together, rows ``SeriesId,StartDate,EndDate``;
* ``observations.csv``: optional legacy single file with the observation
  layout. It is merged at load time and never written back.

The whole store is read into memory on first use. Afterwards every mutation is
written through to the store before the call returns.
"""

import asyncio
import csv
import io
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Iterator

from seriescache.foundation.exceptions import InvalidDateRangeError
from seriescache.runtime.data_io import BlobStore, TimeSeriesRepository
from seriescache.runtime.models import DateRange, Observation, SeriesPoint, as_date

logger = logging.getLogger(__name__)

OBSERVATION_HEADER = ("SeriesId", "Date", "Value")
COVERAGE_HEADER = ("SeriesId", "StartDate", "EndDate")

_MISSING = object()


def sanitize_series_id(series_id: str) -> str:
    """Map ``series_id`` onto characters that are safe in a blob name."""

    if not series_id or not series_id.strip():
        return "unknown"
    return "".join(
        ch if (ch.isascii() and ch.isalnum()) or ch in "-_" else "_" for ch in series_id
    )


def _parse_value(text: str) -> Decimal | None:
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def _format_value(value: Decimal | None) -> str:
    return "" if value is None else format(value, "f")


def _read_rows(payload: bytes, name: str) -> Iterator[tuple[str, str, str]]:
    try:
        text = payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        logger.warning("%s: replacing undecodable bytes (%s)", name, exc.reason)
        text = payload.decode("utf-8-sig", errors="replace")
    reader = csv.reader(io.StringIO(text))
    next(reader, None)  # header
    for row in reader:
        cells = [cell.strip() for cell in row]
        if len(cells) < 3 or not cells[0]:
            continue
        yield cells[0], cells[1], cells[2]


def _write_rows(header: tuple[str, ...], rows: Iterable[tuple[str, ...]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


class CsvTimeSeriesRepository(TimeSeriesRepository):
    """Blob-backed repository with lazy load and write-through flushes."""

    def __init__(
        self,
        store: BlobStore,
        *,
        coverage_name: str = "coverage.csv",
        legacy_observations_name: str = "observations.csv",
        observation_prefix: str = "obs-",
    ) -> None:
        self.store = store
        self.coverage_name = coverage_name
        self.legacy_observations_name = legacy_observations_name
        self.observation_prefix = observation_prefix
        self._lock = asyncio.Lock()
        self._loaded = False
        self._data: dict[str, dict[date, Decimal | None]] = {}
        self._coverage: dict[str, list[DateRange]] = {}

    # ------------------------------------------------------------------
    def observation_blob_name(self, series_id: str) -> str:
        return f"{self.observation_prefix}{sanitize_series_id(series_id)}.csv"

    @property
    def loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    async def get_coverage(self, series_id: str) -> list[DateRange]:
        await self._ensure_loaded()
        return list(self._coverage.get(series_id, []))

    async def upsert_observations(self, rows: Iterable[Observation]) -> None:
        await self._ensure_loaded()
        async with self._lock:
            previous: dict[tuple[str, date], object] = {}
            for row in rows:
                day = as_date(row.date)
                table = self._data.setdefault(row.series_id, {})
                previous.setdefault((row.series_id, day), table.get(day, _MISSING))
                table[day] = row.value
            if not previous:
                return
            touched = {series_id for series_id, _ in previous}
            try:
                await self._flush_observations(touched)
            except BaseException:
                self._restore_observations(previous)
                raise

    async def replace_coverage(
        self, series_id: str, ranges: Iterable[DateRange]
    ) -> None:
        await self._ensure_loaded()
        async with self._lock:
            previous = self._coverage.get(series_id)
            self._coverage[series_id] = sorted(
                (r.normalize() for r in ranges), key=lambda r: (r.start, r.end)
            )
            try:
                await self._flush_coverage()
            except BaseException:
                if previous is None:
                    self._coverage.pop(series_id, None)
                else:
                    self._coverage[series_id] = previous
                raise

    async def get_series(
        self, series_id: str, start: date, end: date
    ) -> list[SeriesPoint]:
        await self._ensure_loaded()
        window = DateRange.of(start, end).normalize()
        table = self._data.get(series_id, {})
        return [
            SeriesPoint(day, table[day]) for day in sorted(table) if window.contains(day)
        ]

    async def series_ids(self) -> list[str]:
        await self._ensure_loaded()
        return sorted(set(self._data) | set(self._coverage))

    # ------------------------------------------------------------------
    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        async with self._lock:
            if self._loaded:
                return
            await self._load_observations()
            await self._load_coverage()
            self._loaded = True
            logger.info(
                "loaded %d series (%d with coverage) from store",
                len(self._data),
                len(self._coverage),
            )

    async def _load_observations(self) -> None:
        names: list[str] = []
        if await self.store.exists(self.legacy_observations_name):
            names.append(self.legacy_observations_name)
        names.extend(
            name
            for name in await self.store.list_by_prefix(self.observation_prefix)
            if name != self.legacy_observations_name and name.endswith(".csv")
        )
        for name in names:
            payload = await self.store.read_all(name)
            for series_id, raw_date, raw_value in _read_rows(payload, name):
                try:
                    day = as_date(raw_date)
                except InvalidDateRangeError:
                    logger.debug("%s: skipping row with bad date %r", name, raw_date)
                    continue
                self._data.setdefault(series_id, {})[day] = _parse_value(raw_value)

    async def _load_coverage(self) -> None:
        if not await self.store.exists(self.coverage_name):
            return
        payload = await self.store.read_all(self.coverage_name)
        for series_id, raw_start, raw_end in _read_rows(payload, self.coverage_name):
            try:
                rng = DateRange.of(raw_start, raw_end).normalize()
            except InvalidDateRangeError:
                logger.debug("coverage: skipping row %r", (series_id, raw_start, raw_end))
                continue
            self._coverage.setdefault(series_id, []).append(rng)
        for series_id, ranges in self._coverage.items():
            ranges.sort(key=lambda r: (r.start, r.end))

    # ------------------------------------------------------------------
    async def _flush_observations(self, series_ids: Iterable[str]) -> None:
        blobs = sorted({self.observation_blob_name(sid) for sid in series_ids})
        for blob in blobs:
            # distinct ids can sanitize to the same blob; it holds all of them
            owners = sorted(
                sid for sid in self._data if self.observation_blob_name(sid) == blob
            )
            rows = (
                (sid, day.isoformat(), _format_value(value))
                for sid in owners
                for day, value in sorted(self._data[sid].items())
            )
            await self.store.write_all(blob, _write_rows(OBSERVATION_HEADER, rows))

    async def _flush_coverage(self) -> None:
        rows = (
            (series_id, rng.start.isoformat(), rng.end.isoformat())
            for series_id in sorted(self._coverage)
            for rng in self._coverage[series_id]
        )
        await self.store.write_all(self.coverage_name, _write_rows(COVERAGE_HEADER, rows))

    def _restore_observations(self, previous: dict[tuple[str, date], object]) -> None:
        for (series_id, day), value in previous.items():
            table = self._data.setdefault(series_id, {})
            if value is _MISSING:
                table.pop(day, None)
            else:
                table[day] = value  # type: ignore[assignment]
            if not table:
                self._data.pop(series_id, None)


__all__ = [
    "COVERAGE_HEADER",
    "CsvTimeSeriesRepository",
    "OBSERVATION_HEADER",
    "sanitize_series_id",
]
