"""Several cached series side by side on the union of their dates."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping

import pandas as pd

from seriescache.runtime.models import DateLike, DateRange, SeriesPoint


def column_name(series_id: str) -> str:
    """Lower-case ``series_id`` with every non-alphanumeric character as ``_``."""

    return "".join(ch if ch.isalnum() else "_" for ch in series_id).lower()


def unique_series_ids(series_ids: Iterable[str]) -> list[str]:
    """Strip, drop blanks and drop case-insensitive repeats, keeping order."""

    seen: set[str] = set()
    unique: list[str] = []
    for raw in series_ids:
        series_id = raw.strip()
        if not series_id or series_id.casefold() in seen:
            continue
        seen.add(series_id.casefold())
        unique.append(series_id)
    return unique


def align_series(
    series: Mapping[str, Iterable[SeriesPoint]], start: DateLike, end: DateLike
) -> pd.DataFrame:
    """Return a frame with a ``date`` column plus one column per series.

    Rows are every date inside ``[start, end]`` on which at least one series
    has an observation, ascending. A series without a row on a date shows
    ``None`` there, as does a known-missing observation. Columns follow the
    mapping's order and are named by :func:`column_name`; when two ids share
    a column name the later one wins.
    """

    window = DateRange.of(start, end).normalize()
    by_series: dict[str, dict[date, Decimal | None]] = {}
    for series_id, points in series.items():
        # last wins on duplicate dates
        by_series[series_id] = {p.date: p.value for p in points if window.contains(p.date)}

    days = sorted({day for table in by_series.values() for day in table})
    columns: dict[str, list] = {"date": days}
    for series_id, table in by_series.items():
        columns[column_name(series_id)] = [table.get(day) for day in days]
    return pd.DataFrame(columns, columns=list(columns))


__all__ = ["align_series", "column_name", "unique_series_ids"]
