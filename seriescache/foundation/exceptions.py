"""Custom exception types for the series cache."""

from __future__ import annotations

from datetime import date

__all__ = [
    "SeriesCacheError",
    "ConfigurationError",
    "SeriesFetchError",
    "InvalidDateRangeError",
]


class SeriesCacheError(Exception):
    """Base class for all series cache errors."""
    pass


class ConfigurationError(SeriesCacheError, ValueError):
    """Raised when required settings are missing or invalid."""
    pass


class InvalidDateRangeError(SeriesCacheError, ValueError):
    """Raised when a caller supplies a date or window that cannot be parsed."""
    pass


class SeriesFetchError(SeriesCacheError, RuntimeError):
    """Raised when the upstream provider cannot deliver a requested window."""

    def __init__(
        self,
        series_id: str,
        start: date,
        end: date,
        *,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        detail = (
            f"failed to fetch {series_id} for [{start.isoformat()}, {end.isoformat()}]: {reason}"
        )
        if status_code is not None:
            detail += f" (status={status_code})"
        super().__init__(detail)
        self.series_id = series_id
        self.start = start
        self.end = end
        self.reason = reason
        self.status_code = status_code
