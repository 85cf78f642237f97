from datetime import date
from decimal import Decimal

import pytest

from seriescache.io.csv_repository import CsvTimeSeriesRepository
from seriescache.io.memory_repository import InMemoryTimeSeriesRepository
from seriescache.runtime.models import DateRange, Observation, SeriesPoint


def d(day: int) -> date:
    return date(2020, 1, day)


async def _exercise(repo):
    await repo.upsert_observations(
        [
            Observation("DGS10", d(3), Decimal("1.80")),
            Observation("DGS10", d(1), Decimal("1.88")),
            Observation("DGS10", d(2), None),
            Observation("DGS2", d(1), Decimal("1.58")),
        ]
    )
    await repo.upsert_observations(
        [
            Observation("DGS10", d(3), Decimal("1.81")),
            Observation("DGS10", d(4), Decimal("1.79")),
        ]
    )
    await repo.replace_coverage(
        "DGS10", [DateRange(d(10), d(6)), DateRange(d(1), d(4))]
    )
    await repo.replace_coverage("EMPTY", [])
    return {
        "coverage": await repo.get_coverage("DGS10"),
        "empty_coverage": await repo.get_coverage("EMPTY"),
        "unknown_coverage": await repo.get_coverage("NOPE"),
        "window": await repo.get_series("DGS10", d(2), d(3)),
        "reversed": await repo.get_series("DGS10", d(31), d(1)),
        "outside": await repo.get_series("DGS10", d(20), d(31)),
        "unknown_series": await repo.get_series("NOPE", d(1), d(31)),
        "ids": await repo.series_ids(),
    }


@pytest.mark.asyncio
async def test_memory_and_csv_repositories_agree(blob_store):
    memory = await _exercise(InMemoryTimeSeriesRepository())
    durable = await _exercise(CsvTimeSeriesRepository(blob_store))
    reloaded_repo = CsvTimeSeriesRepository(blob_store)
    reloaded = {
        "coverage": await reloaded_repo.get_coverage("DGS10"),
        "reversed": await reloaded_repo.get_series("DGS10", d(31), d(1)),
        "ids": await reloaded_repo.series_ids(),
    }

    assert memory == durable
    assert memory["coverage"] == [DateRange(d(1), d(4)), DateRange(d(6), d(10))]
    assert memory["empty_coverage"] == [] and memory["unknown_coverage"] == []
    assert memory["window"] == [SeriesPoint(d(2), None), SeriesPoint(d(3), Decimal("1.81"))]
    assert memory["reversed"] == [
        SeriesPoint(d(1), Decimal("1.88")),
        SeriesPoint(d(2), None),
        SeriesPoint(d(3), Decimal("1.81")),
        SeriesPoint(d(4), Decimal("1.79")),
    ]
    assert memory["outside"] == [] and memory["unknown_series"] == []
    assert memory["ids"] == ["DGS10", "DGS2", "EMPTY"]
    # a series with empty coverage and no rows leaves nothing in the store
    assert reloaded == {
        "coverage": memory["coverage"],
        "reversed": memory["reversed"],
        "ids": ["DGS10", "DGS2"],
    }
