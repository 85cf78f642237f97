from __future__ import annotations

"""Deterministic offline :class:`SeriesClient` used for demos and tests."""

import math
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal

from seriescache.runtime.models import ONE_DAY, Observation

_QUANT = Decimal("0.001")


def _wrap_int32(value: int) -> int:
    return ((value + 0x80000000) & 0xFFFFFFFF) - 0x80000000


def series_seed(series_id: str, seed: str | None = None) -> int:
    """Stable non-negative hash of ``series_id`` and ``seed``."""

    h = 23
    for ch in f"{series_id}|{seed or ''}":
        h = _wrap_int32(h * 31 + ord(ch))
    return abs(h)


def synthetic_value(seed: int, day: date) -> Decimal:
    base = 2.0 + (seed % 300) / 100.0
    wave = math.sin((day.timetuple().tm_yday + seed % 17) / 6.0) * 0.2
    return Decimal(repr(base + wave)).quantize(_QUANT, rounding=ROUND_HALF_EVEN)


class SyntheticSeriesClient:
    """Generate a smooth curve on weekdays only.

    The level depends on ``series_id`` and the optional ``seed`` so two
    series, or two seeds of the same series, produce different curves.
    """

    def __init__(self, seed: str | None = None) -> None:
        self.seed = seed
        self.calls: int = 0

    async def fetch_observations(
        self, series_id: str, start: date, end: date
    ) -> list[Observation]:
        self.calls += 1
        seed = series_seed(series_id, self.seed)
        rows: list[Observation] = []
        day = start
        while day <= end:
            if day.weekday() < 5:
                rows.append(Observation(series_id, day, synthetic_value(seed, day)))
            if day == date.max:
                break
            day += ONE_DAY
        return rows


__all__ = ["SyntheticSeriesClient", "series_seed", "synthetic_value"]
