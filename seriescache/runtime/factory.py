from __future__ import annotations

"""Resolve the series client and repository selected by configuration.

Selection happens once, when the process wires its components together; the
returned objects are meant to be shared by every caller in that process.
"""

import logging
from pathlib import Path

from seriescache.foundation.config import (
    CLIENT_MODES,
    STORAGE_BACKENDS,
    ClientConfig,
    FredConfig,
    SeriesCacheConfig,
    StorageConfig,
)
from seriescache.foundation.exceptions import ConfigurationError
from seriescache.io.blobstore import LocalBlobStore
from seriescache.io.csv_repository import CsvTimeSeriesRepository
from seriescache.io.fred import FredSeriesClient
from seriescache.io.memory_repository import InMemoryTimeSeriesRepository
from seriescache.io.synthetic import SyntheticSeriesClient

from .data_io import SeriesClient, TimeSeriesRepository
from .orchestrator import FetchOrchestrator

logger = logging.getLogger(__name__)


def build_series_client(
    client: ClientConfig, fred: FredConfig | None = None
) -> SeriesClient:
    mode = client.mode.strip().lower()
    if mode == "synthetic":
        logger.info("using synthetic series client (seed=%r)", client.seed)
        return SyntheticSeriesClient(seed=client.seed)
    if mode == "fred":
        fred = fred or FredConfig()
        return FredSeriesClient(
            fred.api_key, base_url=fred.base_url, timeout=fred.timeout_seconds
        )
    raise ConfigurationError(
        f"unknown client mode {client.mode!r}; expected one of {', '.join(CLIENT_MODES)}"
    )


def build_repository(storage: StorageConfig) -> TimeSeriesRepository:
    backend = storage.backend.strip().lower()
    if backend == "memory":
        return InMemoryTimeSeriesRepository()
    if backend == "file":
        root = Path(storage.root).expanduser()
        logger.info("using CSV repository at %s", root)
        return CsvTimeSeriesRepository(
            LocalBlobStore(root),
            coverage_name=storage.coverage_name,
            legacy_observations_name=storage.legacy_observations_name,
            observation_prefix=storage.observation_prefix,
        )
    raise ConfigurationError(
        f"unknown storage backend {storage.backend!r}; "
        f"expected one of {', '.join(STORAGE_BACKENDS)}"
    )


def build_orchestrator(config: SeriesCacheConfig) -> FetchOrchestrator:
    """Wire a :class:`FetchOrchestrator` from a full configuration."""

    return FetchOrchestrator(
        build_series_client(config.client, config.fred),
        build_repository(config.storage),
    )


__all__ = ["build_orchestrator", "build_repository", "build_series_client"]
