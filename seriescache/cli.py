from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from typing import List, TextIO

import pandas as pd

from seriescache.foundation.config import SeriesCacheConfig
from seriescache.foundation.exceptions import (
    ConfigurationError,
    InvalidDateRangeError,
    SeriesFetchError,
)
from seriescache.runtime.configuration import get_config
from seriescache.runtime.data_io import TimeSeriesRepository
from seriescache.runtime.factory import build_repository, build_series_client
from seriescache.runtime.models import DateRange
from seriescache.runtime.orchestrator import FetchOrchestrator
from seriescache.transforms.align import align_series, unique_series_ids
from seriescache.transforms.spread import compute_spread, spread_frame
from seriescache.transforms.valuation import (
    DEFAULT_EQUITY_SERIES,
    DEFAULT_MARKET_CAP_SERIES,
    DEFAULT_OUTPUT_SERIES,
    DEFAULT_PRICE_SERIES,
    compute_valuation,
    valuation_frame,
)

logger = logging.getLogger(__name__)

_FETCHING_COMMANDS = frozenset({"ensure", "show", "spread", "align", "buffett"})


def _add_window(p: argparse.ArgumentParser) -> None:
    p.add_argument("--start", required=True, help="First date (YYYY-MM-DD)")
    p.add_argument("--end", required=True, help="Last date (YYYY-MM-DD)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seriescache", description="Cache daily time series locally"
    )
    parser.add_argument("--config", help="Path to seriescache.yml")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_ensure = sub.add_parser("ensure", help="Fetch missing ranges into the cache")
    p_ensure.add_argument("series", nargs="+", help="Series ids")
    _add_window(p_ensure)

    p_show = sub.add_parser("show", help="Print cached values as CSV")
    p_show.add_argument("series", help="Series id")
    _add_window(p_show)

    p_cov = sub.add_parser("coverage", help="Print covered date ranges")
    p_cov.add_argument("series", help="Series id")

    sub.add_parser("list", help="Print every cached series id")

    p_spread = sub.add_parser("spread", help="Print series_a - series_b as CSV")
    p_spread.add_argument("series_a", help="Minuend series id")
    p_spread.add_argument("series_b", help="Subtrahend series id")
    _add_window(p_spread)

    p_align = sub.add_parser("align", help="Print several series side by side as CSV")
    p_align.add_argument("series", nargs="+", help="Series ids")
    _add_window(p_align)

    p_buffett = sub.add_parser(
        "buffett", help="Print market cap to output ratio and real equity index as CSV"
    )
    p_buffett.add_argument("--market-cap", default=DEFAULT_MARKET_CAP_SERIES)
    p_buffett.add_argument("--output", default=DEFAULT_OUTPUT_SERIES)
    p_buffett.add_argument("--equity", default=DEFAULT_EQUITY_SERIES)
    p_buffett.add_argument("--price", default=DEFAULT_PRICE_SERIES)
    _add_window(p_buffett)

    return parser


def _fmt(value: object) -> str:
    return "" if value is None else str(value)


def _write_frame(frame: pd.DataFrame, out: TextIO) -> None:
    for column in frame.columns:
        frame[column] = frame[column].map(
            lambda v: v.isoformat() if isinstance(v, date) else v
        )
    out.write(frame.to_csv(index=False, lineterminator="\n"))


async def _inspect(
    args: argparse.Namespace, repository: TimeSeriesRepository, out: TextIO
) -> None:
    if args.cmd == "coverage":
        for rng in await repository.get_coverage(args.series):
            print(f"{rng.start.isoformat()},{rng.end.isoformat()}", file=out)
    elif args.cmd == "list":
        for series_id in await repository.series_ids():
            print(series_id, file=out)


async def _fetch(
    args: argparse.Namespace,
    window: DateRange,
    orchestrator: FetchOrchestrator,
    out: TextIO,
) -> None:
    if args.cmd == "ensure":
        for series_id in args.series:
            filled = await orchestrator.ensure_cached(series_id, window.start, window.end)
            if not filled:
                print(f"{series_id}: {window} already cached", file=out)
                continue
            print(f"{series_id}: filled {len(filled)} gap(s)", file=out)
            for gap in filled:
                print(f"  {gap}", file=out)
    elif args.cmd == "show":
        points = await orchestrator.load_series(args.series, window.start, window.end)
        print("date,value", file=out)
        for point in points:
            print(f"{point.date.isoformat()},{_fmt(point.value)}", file=out)
    elif args.cmd == "spread":
        series_a = await orchestrator.load_series(args.series_a, window.start, window.end)
        series_b = await orchestrator.load_series(args.series_b, window.start, window.end)
        _write_frame(spread_frame(compute_spread(series_a, series_b)), out)
    elif args.cmd == "align":
        series_ids = unique_series_ids(args.series)
        loaded = {
            series_id: await orchestrator.load_series(series_id, window.start, window.end)
            for series_id in series_ids
        }
        _write_frame(align_series(loaded, window.start, window.end), out)
    elif args.cmd == "buffett":
        inputs = [
            await orchestrator.load_series(series_id, window.start, window.end)
            for series_id in (args.market_cap, args.output, args.equity, args.price)
        ]
        result = compute_valuation(*inputs, window.start, window.end)
        logger.info(
            "price index base %s as of %s",
            result.base_price_index,
            result.base_price_index_date,
        )
        _write_frame(valuation_frame(result), out)


async def run(
    args: argparse.Namespace, config: SeriesCacheConfig, out: TextIO | None = None
) -> None:
    """Run one parsed command against the configured repository."""

    out = out or sys.stdout
    if args.cmd not in _FETCHING_COMMANDS:
        repository = build_repository(config.storage)
        try:
            await _inspect(args, repository, out)
        finally:
            await repository.aclose()
        return

    window = DateRange.of(args.start, args.end).normalize()
    repository = build_repository(config.storage)
    client = build_series_client(config.client, config.fred)
    try:
        await _fetch(args, window, FetchOrchestrator(client, repository), out)
    finally:
        aclose = getattr(client, "aclose", None)
        if aclose is not None:
            await aclose()
        await repository.aclose()


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    try:
        config = get_config(args.config)
    except (TypeError, ValueError, OSError) as exc:
        # ConfigurationError is a ValueError
        print(f"error: invalid configuration: {exc}", file=sys.stderr)
        return 1

    try:
        asyncio.run(run(args, config))
    except InvalidDateRangeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (ConfigurationError, SeriesFetchError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
