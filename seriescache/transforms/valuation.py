"""Market value of equities relative to economic output (the "Buffett indicator").

Inputs arrive at different frequencies: market capitalisation and the equity
index daily, output quarterly, the price index monthly. Every date on which
any input has an observation inside the window becomes one point, and each
input contributes its latest known value at that date. The equity index is
also deflated to the price level of the window's start.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

import pandas as pd

from seriescache.runtime.models import DateLike, DateRange, SeriesPoint

# FRED ids used when the caller does not pick its own
DEFAULT_MARKET_CAP_SERIES = "WILL5000INDFC"
DEFAULT_OUTPUT_SERIES = "GDP"
DEFAULT_EQUITY_SERIES = "SP500"
DEFAULT_PRICE_SERIES = "CPIAUCSL"

VALUATION_COLUMNS = (
    "date",
    "market_cap",
    "economic_output",
    "indicator_percent",
    "equity_index",
    "equity_index_real",
    "economic_output_as_of",
    "price_index_as_of",
)

_CENTS = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class ValuationPoint:
    date: date
    market_cap: Decimal | None
    economic_output: Decimal | None
    indicator_percent: Decimal | None
    equity_index: Decimal | None
    equity_index_real: Decimal | None
    economic_output_as_of: date | None
    price_index_as_of: date | None


@dataclass(frozen=True, slots=True)
class ValuationResult:
    points: list[ValuationPoint] = field(default_factory=list)
    base_price_index: Decimal | None = None
    base_price_index_date: date | None = None


class _LatestValue:
    """Walk one ascending series and remember its latest non-missing value."""

    def __init__(self, points: Sequence[SeriesPoint]) -> None:
        self._points = points
        self._idx = 0
        self.value: Decimal | None = None
        self.as_of: date | None = None

    def advance(self, day: date) -> None:
        while self._idx < len(self._points) and self._points[self._idx].date <= day:
            point = self._points[self._idx]
            self._idx += 1
            if point.value is not None:
                self.value = point.value
                self.as_of = point.date


def _round(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def _up_to(points: Iterable[SeriesPoint], end: date) -> list[SeriesPoint]:
    return sorted((p for p in points if p.date <= end), key=lambda p: p.date)


def _base_price(points: Sequence[SeriesPoint], start: date) -> SeriesPoint | None:
    known = [p for p in points if p.value is not None]
    before = [p for p in known if p.date <= start]
    if before:
        return before[-1]
    return known[0] if known else None


def compute_valuation(
    market_cap: Iterable[SeriesPoint],
    economic_output: Iterable[SeriesPoint],
    equity_index: Iterable[SeriesPoint],
    price_index: Iterable[SeriesPoint],
    start: DateLike,
    end: DateLike,
) -> ValuationResult:
    """Return one :class:`ValuationPoint` per input date inside ``[start, end]``.

    ``indicator_percent`` is ``market_cap / economic_output * 100`` and
    ``equity_index_real`` is ``equity_index * base / price_index`` where
    ``base`` is the last price index known on ``start`` (or the first one
    available after it). Both are rounded half away from zero to cents and are
    ``None`` whenever an input is unknown or a divisor is zero. Points before
    ``start`` only seed the carried-forward values.
    """

    window = DateRange.of(start, end).normalize()
    markets = _up_to(market_cap, window.end)
    outputs = _up_to(economic_output, window.end)
    equities = _up_to(equity_index, window.end)
    prices = _up_to(price_index, window.end)

    days = sorted(
        {
            p.date
            for series in (markets, equities, outputs, prices)
            for p in series
            if window.contains(p.date)
        }
    )
    if not days:
        return ValuationResult()

    base = _base_price(prices, window.start)
    base_value = base.value if base is not None else None

    market = _LatestValue(markets)
    output = _LatestValue(outputs)
    equity = _LatestValue(equities)
    price = _LatestValue(prices)

    points: list[ValuationPoint] = []
    for day in days:
        for carried in (market, output, equity, price):
            carried.advance(day)

        ratio = None
        if market.value is not None and output.value:
            ratio = _round(market.value / output.value * 100)

        real = None
        if equity.value is not None and base_value is not None and price.value:
            real = _round(equity.value * base_value / price.value)

        points.append(
            ValuationPoint(
                date=day,
                market_cap=market.value,
                economic_output=output.value,
                indicator_percent=ratio,
                equity_index=equity.value,
                equity_index_real=real,
                economic_output_as_of=output.as_of,
                price_index_as_of=price.as_of,
            )
        )

    return ValuationResult(
        points=points,
        base_price_index=base_value,
        base_price_index_date=base.date if base is not None else None,
    )


def valuation_frame(result: ValuationResult) -> pd.DataFrame:
    """One row per valuation point, columns as in :data:`VALUATION_COLUMNS`."""
    rows = [
        (
            p.date,
            p.market_cap,
            p.economic_output,
            p.indicator_percent,
            p.equity_index,
            p.equity_index_real,
            p.economic_output_as_of,
            p.price_index_as_of,
        )
        for p in result.points
    ]
    return pd.DataFrame(rows, columns=list(VALUATION_COLUMNS))


__all__ = [
    "DEFAULT_EQUITY_SERIES",
    "DEFAULT_MARKET_CAP_SERIES",
    "DEFAULT_OUTPUT_SERIES",
    "DEFAULT_PRICE_SERIES",
    "VALUATION_COLUMNS",
    "ValuationPoint",
    "ValuationResult",
    "compute_valuation",
    "valuation_frame",
]
