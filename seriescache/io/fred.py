from __future__ import annotations

"""Asynchronous client for FRED series observations."""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from seriescache.foundation.exceptions import (
    ConfigurationError,
    InvalidDateRangeError,
    SeriesFetchError,
)
from seriescache.runtime.models import Observation, as_date

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.stlouisfed.org"
OBSERVATIONS_PATH = "/fred/series/observations"
MISSING_VALUE = "."


class FredSeriesClient:
    """Fetch daily observations from the FRED REST API.

    The API reports days without an observation with the value ``"."``;
    those become ``Observation(value=None)``. Records whose date or value
    cannot be parsed are dropped from the batch.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ConfigurationError("FRED api_key is not configured")
        self._api_key = api_key.strip()
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------
    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, headers={"Accept": "application/json"}
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FredSeriesClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    async def fetch_observations(
        self, series_id: str, start: date, end: date
    ) -> list[Observation]:
        params = {
            "series_id": series_id,
            "api_key": self._api_key,
            "file_type": "json",
            "observation_start": start.isoformat(),
            "observation_end": end.isoformat(),
        }
        client = self._get_client()
        try:
            resp = await client.get(
                f"{self.base_url}{OBSERVATIONS_PATH}", params=params, timeout=self.timeout
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SeriesFetchError(
                series_id,
                start,
                end,
                reason="provider returned an error status",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise SeriesFetchError(
                series_id, start, end, reason=f"{type(exc).__name__}: {exc}"
            ) from exc

        try:
            payload = resp.json()
        except ValueError as exc:
            raise SeriesFetchError(
                series_id, start, end, reason="response body is not JSON"
            ) from exc
        return self._parse(series_id, payload)

    # ------------------------------------------------------------------
    @staticmethod
    def _parse(series_id: str, payload: Any) -> list[Observation]:
        records = payload.get("observations") if isinstance(payload, dict) else None
        if not records:
            return []
        observations: list[Observation] = []
        for record in records:
            parsed = _parse_record(series_id, record)
            if parsed is None:
                logger.debug("%s: dropping malformed record %r", series_id, record)
                continue
            observations.append(parsed)
        return observations


def _parse_record(series_id: str, record: Any) -> Observation | None:
    if not isinstance(record, dict):
        return None
    raw_date = record.get("date")
    if not isinstance(raw_date, str):
        return None
    try:
        day = as_date(raw_date)
    except InvalidDateRangeError:
        return None

    raw_value = record.get("value")
    if raw_value is None:
        return Observation(series_id, day, None)
    text = str(raw_value).strip()
    if not text or text == MISSING_VALUE:
        return Observation(series_id, day, None)
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return Observation(series_id, day, value)


__all__ = ["DEFAULT_BASE_URL", "FredSeriesClient", "MISSING_VALUE"]
