"""Series clients, blob storage and repository implementations."""

from .blobstore import LocalBlobStore
from .csv_repository import CsvTimeSeriesRepository, sanitize_series_id
from .fred import FredSeriesClient
from .memory_repository import InMemoryTimeSeriesRepository
from .synthetic import SyntheticSeriesClient

__all__ = [
    "CsvTimeSeriesRepository",
    "FredSeriesClient",
    "InMemoryTimeSeriesRepository",
    "LocalBlobStore",
    "SyntheticSeriesClient",
    "sanitize_series_id",
]
