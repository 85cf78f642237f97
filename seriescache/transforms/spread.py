"""Spread between two cached series, e.g. 10y minus 2y treasury yields."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

import pandas as pd

from seriescache.runtime.models import SeriesPoint

SPREAD_COLUMNS = ("date", "series_a", "series_b", "spread")


@dataclass(frozen=True, slots=True)
class SpreadPoint:
    date: date
    series_a: Decimal | None
    series_b: Decimal | None
    spread: Decimal | None


def compute_spread(
    series_a: Iterable[SeriesPoint], series_b: Iterable[SeriesPoint]
) -> list[SpreadPoint]:
    """Join both series on date and return ``a - b`` per shared day.

    Days present in only one series are skipped. A day where either value is
    missing keeps both inputs and reports ``spread=None``.
    """

    by_date = {point.date: point.value for point in series_b}
    points: list[SpreadPoint] = []
    for point in series_a:
        if point.date not in by_date:
            continue
        other = by_date[point.date]
        spread = None
        if point.value is not None and other is not None:
            spread = point.value - other
        points.append(SpreadPoint(point.date, point.value, other, spread))
    points.sort(key=lambda p: p.date)
    return points


def spread_frame(points: Iterable[SpreadPoint]) -> pd.DataFrame:
    """Collect spread points into a DataFrame with one row per date."""
    rows = [(p.date, p.series_a, p.series_b, p.spread) for p in points]
    return pd.DataFrame(rows, columns=list(SPREAD_COLUMNS))


__all__ = ["SPREAD_COLUMNS", "SpreadPoint", "compute_spread", "spread_frame"]
