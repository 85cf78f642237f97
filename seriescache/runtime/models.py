from __future__ import annotations

"""Value types shared by the coverage algebra, clients and repositories."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from seriescache.foundation.exceptions import InvalidDateRangeError

ONE_DAY = timedelta(days=1)

DateLike = date | datetime | str


def as_date(value: DateLike) -> date:
    """Return ``value`` as a calendar date, discarding any time of day."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError as exc:
            raise InvalidDateRangeError(f"invalid date: {value!r}") from exc
    raise InvalidDateRangeError(f"unsupported date value: {value!r}")


@dataclass(frozen=True, slots=True)
class DateRange:
    """Closed interval ``[start, end]`` of whole dates."""

    start: date
    end: date

    @classmethod
    def of(cls, start: DateLike, end: DateLike) -> "DateRange":
        return cls(as_date(start), as_date(end))

    @property
    def is_empty(self) -> bool:
        return self.end < self.start

    @property
    def days(self) -> int:
        if self.is_empty:
            return 0
        return (self.end - self.start).days + 1

    def normalize(self) -> "DateRange":
        if self.start <= self.end:
            return self
        return DateRange(self.end, self.start)

    def intersect(self, other: "DateRange") -> "DateRange | None":
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start > end:
            return None
        return DateRange(start, end)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()}]"


@dataclass(frozen=True, slots=True)
class Observation:
    """One provider observation; ``value`` is ``None`` for a known-missing day."""

    series_id: str
    date: date
    value: Decimal | None


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    """Read-side projection of an :class:`Observation`."""

    date: date
    value: Decimal | None


__all__ = [
    "ONE_DAY",
    "DateLike",
    "DateRange",
    "Observation",
    "SeriesPoint",
    "as_date",
]
