"""Derived views computed from cached series."""

from .align import align_series, column_name, unique_series_ids
from .spread import SpreadPoint, compute_spread, spread_frame
from .valuation import ValuationPoint, ValuationResult, compute_valuation, valuation_frame

__all__ = [
    "SpreadPoint",
    "ValuationPoint",
    "ValuationResult",
    "align_series",
    "column_name",
    "compute_spread",
    "compute_valuation",
    "spread_frame",
    "unique_series_ids",
    "valuation_frame",
]
