"""Local cache of daily time series fetched from remote providers."""

from __future__ import annotations

from .foundation.exceptions import (
    ConfigurationError,
    InvalidDateRangeError,
    SeriesCacheError,
    SeriesFetchError,
)
from .runtime.models import DateRange, Observation, SeriesPoint
from .runtime.orchestrator import FetchOrchestrator

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DateRange",
    "FetchOrchestrator",
    "InvalidDateRangeError",
    "Observation",
    "SeriesCacheError",
    "SeriesFetchError",
    "SeriesPoint",
    "__version__",
]
