from __future__ import annotations

"""Fill coverage gaps from a :class:`SeriesClient` into a repository."""

import logging
import time

from . import metrics
from .coverage import coalesce, complement
from .data_io import SeriesClient, TimeSeriesRepository
from .models import DateLike, DateRange, Observation, SeriesPoint

logger = logging.getLogger(__name__)


class FetchOrchestrator:
    """Make a requested window of a series available in the repository.

    Each call compares the window against stored coverage, fetches every gap
    with one upstream request, and publishes the new coverage in a single
    ``replace_coverage`` call once all gaps have been stored.
    """

    def __init__(self, client: SeriesClient, repository: TimeSeriesRepository) -> None:
        self.client = client
        self.repository = repository

    # ------------------------------------------------------------------
    async def ensure_cached(
        self, series_id: str, start: DateLike, end: DateLike
    ) -> list[DateRange]:
        """Fetch whatever part of ``[start, end]`` is not covered yet.

        Returns the gaps that were filled; an empty list means the window was
        already covered and neither the client nor the repository was written.
        A client error propagates and leaves coverage untouched.
        """

        metrics.ensure_requests_total.labels(series_id=series_id).inc()
        started_at = time.perf_counter()
        try:
            return await self._fill(series_id, DateRange.of(start, end).normalize())
        finally:
            duration_ms = (time.perf_counter() - started_at) * 1000.0
            metrics.ensure_duration_ms.observe(duration_ms)

    # ------------------------------------------------------------------
    async def load_series(
        self, series_id: str, start: DateLike, end: DateLike
    ) -> list[SeriesPoint]:
        target = DateRange.of(start, end).normalize()
        await self.ensure_cached(series_id, target.start, target.end)
        return await self.repository.get_series(series_id, target.start, target.end)

    # ------------------------------------------------------------------
    async def _fill(self, series_id: str, target: DateRange) -> list[DateRange]:
        coverage = await self.repository.get_coverage(series_id)
        gaps = complement(target, coverage)
        if not gaps:
            metrics.cache_hits_total.labels(series_id=series_id).inc()
            logger.debug("%s %s already covered", series_id, target)
            return []

        logger.info(
            "%s %s: fetching %d gap(s) %s",
            series_id,
            target,
            len(gaps),
            ", ".join(str(gap) for gap in gaps),
        )
        fetched: list[DateRange] = []
        for gap in gaps:
            try:
                rows = await self.client.fetch_observations(series_id, gap.start, gap.end)
            except Exception:
                metrics.fetch_failures_total.labels(series_id=series_id).inc()
                logger.warning(
                    "%s: fetch for %s failed; coverage left unchanged", series_id, gap
                )
                raise
            metrics.gap_fetches_total.labels(series_id=series_id).inc()
            rows = self._clip(rows, series_id, gap)
            await self.repository.upsert_observations(rows)
            metrics.observations_upserted_total.labels(series_id=series_id).inc(len(rows))
            fetched.append(gap)

        updated = coalesce([*coverage, *fetched])
        await self.repository.replace_coverage(series_id, updated)
        logger.info(
            "%s: coverage now %s", series_id, ", ".join(str(r) for r in updated)
        )
        return fetched

    # ------------------------------------------------------------------
    @staticmethod
    def _clip(
        rows: list[Observation], series_id: str, gap: DateRange
    ) -> list[Observation]:
        kept = [r for r in rows if r.series_id == series_id and gap.contains(r.date)]
        if len(kept) != len(rows):
            logger.debug(
                "%s: dropped %d row(s) outside %s", series_id, len(rows) - len(kept), gap
            )
        return kept


__all__ = ["FetchOrchestrator"]
