"""Coverage algebra, repository contract and fetch orchestration."""

from __future__ import annotations

from .coverage import coalesce, complement, coverage_bounds, covers
from .data_io import BlobStore, SeriesClient, TimeSeriesRepository
from .models import DateRange, Observation, SeriesPoint, as_date
from .orchestrator import FetchOrchestrator

__all__ = [
    "BlobStore",
    "DateRange",
    "FetchOrchestrator",
    "Observation",
    "SeriesClient",
    "SeriesPoint",
    "TimeSeriesRepository",
    "as_date",
    "coalesce",
    "complement",
    "coverage_bounds",
    "covers",
]
