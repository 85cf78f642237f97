from __future__ import annotations

"""Interval algebra over closed date ranges on a daily grid."""

from datetime import date
from typing import Iterable

from .models import ONE_DAY, DateRange


def _touches(last: DateRange, current: DateRange) -> bool:
    # date.max has no successor; anything after it is already overlapping
    if last.end == date.max:
        return True
    return current.start <= last.end + ONE_DAY


def coalesce(ranges: Iterable[DateRange]) -> list[DateRange]:
    """Merge overlapping and adjacent ranges into minimal disjoint form.

    Reversed ranges are normalized first and empty ranges dropped. The result
    is sorted by start and no two ranges overlap or touch.
    """

    normalized = (r.normalize() for r in ranges)
    ordered = sorted(
        (r for r in normalized if not r.is_empty),
        key=lambda r: (r.start, r.end),
    )
    merged: list[DateRange] = []
    for current in ordered:
        if not merged:
            merged.append(current)
            continue
        last = merged[-1]
        if _touches(last, current):
            merged[-1] = DateRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def complement(target: DateRange, covered: Iterable[DateRange]) -> list[DateRange]:
    """Return the gaps of ``target`` that ``covered`` does not reach.

    Covered ranges are clipped to ``target`` before merging so that ranges
    hanging over either edge never produce out-of-window gaps.
    """

    window = target.normalize()
    clipped = []
    for rng in covered:
        overlap = rng.normalize().intersect(window)
        if overlap is not None:
            clipped.append(overlap)

    gaps: list[DateRange] = []
    cursor = window.start
    for rng in coalesce(clipped):
        if cursor < rng.start:
            gaps.append(DateRange(cursor, rng.start - ONE_DAY))
        if rng.end == date.max:
            return gaps
        cursor = rng.end + ONE_DAY
    if cursor <= window.end:
        gaps.append(DateRange(cursor, window.end))
    return gaps


def coverage_bounds(ranges: Iterable[DateRange]) -> DateRange | None:
    merged = coalesce(ranges)
    if not merged:
        return None
    return DateRange(merged[0].start, merged[-1].end)


def covers(coverage: Iterable[DateRange], target: DateRange) -> bool:
    return not complement(target, coverage)


__all__ = ["coalesce", "complement", "coverage_bounds", "covers"]
