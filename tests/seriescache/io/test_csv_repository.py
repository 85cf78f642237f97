import asyncio
from datetime import date
from decimal import Decimal

import pytest

from seriescache.io.blobstore import LocalBlobStore
from seriescache.io.csv_repository import CsvTimeSeriesRepository, sanitize_series_id
from seriescache.runtime.models import DateRange, Observation, SeriesPoint


def d(day: int) -> date:
    return date(2020, 1, day)


@pytest.mark.asyncio
async def test_write_through_and_reload(blob_store):
    repo = CsvTimeSeriesRepository(blob_store)
    await repo.upsert_observations(
        [
            Observation("DGS10", d(2), Decimal("1.88")),
            Observation("DGS10", d(3), None),
        ]
    )
    await repo.replace_coverage("DGS10", [DateRange(d(1), d(5))])

    assert await blob_store.read_all("obs-DGS10.csv") == (
        b"SeriesId,Date,Value\nDGS10,2020-01-02,1.88\nDGS10,2020-01-03,\n"
    )
    assert await blob_store.read_all("coverage.csv") == (
        b"SeriesId,StartDate,EndDate\nDGS10,2020-01-01,2020-01-05\n"
    )

    reloaded = CsvTimeSeriesRepository(blob_store)
    assert await reloaded.get_coverage("DGS10") == [DateRange(d(1), d(5))]
    assert await reloaded.get_series("DGS10", d(1), d(31)) == [
        SeriesPoint(d(2), Decimal("1.88")),
        SeriesPoint(d(3), None),
    ]


@pytest.mark.asyncio
async def test_upsert_rewrites_only_touched_series(counting_store):
    store = counting_store
    repo = CsvTimeSeriesRepository(store)
    await repo.upsert_observations([Observation("DGS10", d(1), Decimal("1"))])
    await repo.upsert_observations([Observation("DGS2", d(1), Decimal("2"))])

    assert store.writes == ["obs-DGS10.csv", "obs-DGS2.csv"]


@pytest.mark.asyncio
async def test_empty_upsert_writes_nothing(counting_store):
    store = counting_store
    repo = CsvTimeSeriesRepository(store)
    await repo.upsert_observations([])

    assert store.writes == []
    assert repo.loaded


@pytest.mark.asyncio
async def test_legacy_file_is_merged_but_not_rewritten(blob_store, counting_store):
    await blob_store.write_all(
        "observations.csv",
        b"SeriesId,Date,Value\nDGS10,2020-01-01,1.0\nDGS10,2020-01-02,1.1\nDGS2,2020-01-01,0.5\n",
    )
    await blob_store.write_all(
        "obs-DGS10.csv", b"SeriesId,Date,Value\nDGS10,2020-01-02,2.2\n"
    )
    store = counting_store
    repo = CsvTimeSeriesRepository(store)

    assert await repo.get_series("DGS10", d(1), d(2)) == [
        SeriesPoint(d(1), Decimal("1.0")),
        SeriesPoint(d(2), Decimal("2.2")),
    ]

    await repo.upsert_observations([Observation("DGS2", d(2), Decimal("0.6"))])

    assert "observations.csv" not in store.writes
    assert store.writes == ["obs-DGS2.csv"]
    assert await blob_store.read_all("obs-DGS2.csv") == (
        b"SeriesId,Date,Value\nDGS2,2020-01-01,0.5\nDGS2,2020-01-02,0.6\n"
    )


@pytest.mark.asyncio
async def test_concurrent_cold_load_happens_once(blob_store, counting_store):
    await blob_store.write_all(
        "coverage.csv", b"SeriesId,StartDate,EndDate\nDGS10,2020-01-01,2020-01-05\n"
    )
    store = counting_store
    repo = CsvTimeSeriesRepository(store)

    results = await asyncio.gather(*(repo.get_coverage("DGS10") for _ in range(10)))

    assert all(r == [DateRange(d(1), d(5))] for r in results)
    assert store.listings == 1
    assert store.reads.count("coverage.csv") == 1


@pytest.mark.asyncio
async def test_concurrent_upserts_keep_both_writers(blob_store, counting_store):
    repo = CsvTimeSeriesRepository(counting_store)

    await asyncio.gather(
        repo.upsert_observations([Observation("DGS10", d(1), Decimal("1"))]),
        repo.upsert_observations([Observation("DGS10", d(2), Decimal("2"))]),
    )

    reloaded = CsvTimeSeriesRepository(blob_store)
    assert await reloaded.get_series("DGS10", d(1), d(2)) == [
        SeriesPoint(d(1), Decimal("1")),
        SeriesPoint(d(2), Decimal("2")),
    ]


@pytest.mark.asyncio
async def test_bad_rows_are_tolerated(blob_store):
    await blob_store.write_all(
        "obs-DGS10.csv",
        "SeriesId,Date,Value\n"
        "DGS10,2020-01-01,abc\n"
        "DGS10,garbage,1.0\n"
        "DGS10\n"
        ",2020-01-03,1.0\n"
        "DGS10,2020-01-04,4.0,extra\n".encode("utf-8"),
    )
    await blob_store.write_all(
        "coverage.csv",
        b"SeriesId,StartDate,EndDate\nDGS10,2020-01-05,2020-01-01\nDGS10,nope,2020-01-02\n",
    )
    repo = CsvTimeSeriesRepository(blob_store)

    assert await repo.get_series("DGS10", d(1), d(31)) == [
        SeriesPoint(d(1), None),
        SeriesPoint(d(4), Decimal("4.0")),
    ]
    assert await repo.get_coverage("DGS10") == [DateRange(d(1), d(5))]


@pytest.mark.asyncio
async def test_undecodable_bytes_do_not_block_load(blob_store, caplog):
    await blob_store.write_all(
        "obs-OTHER.csv",
        b"SeriesId,Date,Value\n"
        b"OTHER,2020-01-01,\xff\xfe\n"
        b"OTHER,2020-01-\xff2,2.0\n"
        b"OTHER,2020-01-03,3.0\n",
    )
    await blob_store.write_all(
        "coverage.csv", b"SeriesId,StartDate,EndDate\nDGS10,2020-01-01,2020-01-05\n"
    )
    repo = CsvTimeSeriesRepository(blob_store)

    assert await repo.get_coverage("DGS10") == [DateRange(d(1), d(5))]
    assert await repo.get_series("OTHER", d(1), d(31)) == [
        SeriesPoint(d(1), None),
        SeriesPoint(d(3), Decimal("3.0")),
    ]
    assert "obs-OTHER.csv" in caplog.text

    await repo.upsert_observations([Observation("DGS10", d(1), Decimal("1"))])
    assert await repo.get_series("DGS10", d(1), d(1)) == [SeriesPoint(d(1), Decimal("1"))]


@pytest.mark.asyncio
async def test_failed_flush_rolls_back_memory(counting_store):
    store = counting_store
    repo = CsvTimeSeriesRepository(store)
    await repo.upsert_observations([Observation("DGS10", d(1), Decimal("1"))])
    await repo.replace_coverage("DGS10", [DateRange(d(1), d(1))])

    store.fail_writes = True
    with pytest.raises(OSError):
        await repo.upsert_observations(
            [
                Observation("DGS10", d(1), Decimal("9")),
                Observation("NEW", d(1), Decimal("5")),
            ]
        )
    with pytest.raises(OSError):
        await repo.replace_coverage("DGS10", [DateRange(d(1), d(31))])

    assert await repo.get_series("DGS10", d(1), d(1)) == [SeriesPoint(d(1), Decimal("1"))]
    assert await repo.series_ids() == ["DGS10"]
    assert await repo.get_coverage("DGS10") == [DateRange(d(1), d(1))]


@pytest.mark.asyncio
async def test_colliding_ids_share_one_file(blob_store):
    repo = CsvTimeSeriesRepository(blob_store)
    assert repo.observation_blob_name("A/B") == repo.observation_blob_name("A:B")

    await repo.upsert_observations([Observation("A/B", d(1), Decimal("1"))])
    await repo.upsert_observations([Observation("A:B", d(1), Decimal("2"))])

    reloaded = CsvTimeSeriesRepository(blob_store)
    assert await reloaded.get_series("A/B", d(1), d(1)) == [SeriesPoint(d(1), Decimal("1"))]
    assert await reloaded.get_series("A:B", d(1), d(1)) == [SeriesPoint(d(1), Decimal("2"))]


@pytest.mark.asyncio
async def test_custom_names_are_respected(tmp_path):
    store = LocalBlobStore(tmp_path)
    repo = CsvTimeSeriesRepository(
        store, coverage_name="cov.csv", observation_prefix="series-"
    )
    await repo.upsert_observations([Observation("DGS10", d(1), Decimal("1"))])
    await repo.replace_coverage("DGS10", [DateRange(d(1), d(1))])

    assert sorted(p.name for p in tmp_path.iterdir()) == ["cov.csv", "series-DGS10.csv"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("DGS10", "DGS10"),
        ("T10Y-2Y_x", "T10Y-2Y_x"),
        ("a/b c", "a_b_c"),
        ("é", "_"),
        ("", "unknown"),
        ("   ", "unknown"),
    ],
)
def test_sanitize_series_id(raw, expected):
    assert sanitize_series_id(raw) == expected
