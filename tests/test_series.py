from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from memberdash.accessor import SafeAccessor
from memberdash.errors import InvalidParameter, StorageFailure
from memberdash.series import SeriesBuilder

TZ = ZoneInfo("Asia/Shanghai")
NOW = datetime(2026, 10, 19, 15, 30, tzinfo=TZ)
TODAY = datetime(2026, 10, 19, tzinfo=TZ)


@pytest.mark.asyncio
async def test_points_flow_three_day_scenario(store) -> None:
    await store.collection("points_records").add_many(
        [
            {"type": "earn", "points": 10, "createdAt": TODAY - timedelta(days=2) + timedelta(hours=12)},
            {"type": "consume", "points": -20, "createdAt": TODAY - timedelta(days=1) + timedelta(hours=12)},
        ]
    )

    series = await SeriesBuilder(SafeAccessor(store), TZ).points_flow(NOW, days=3)

    assert [p.as_dict() for p in series] == [
        {"date": "2026-10-17", "earned": 10, "consumed": 0},
        {"date": "2026-10-18", "earned": 0, "consumed": 20},
        {"date": "2026-10-19", "earned": 0, "consumed": 0},
    ]


@pytest.mark.asyncio
async def test_member_growth_buckets_by_half_open_day(store) -> None:
    await store.collection("users").add_many(
        [
            {"userId": "a", "createdAt": TODAY - timedelta(days=1)},
            {"userId": "b", "createdAt": TODAY - timedelta(microseconds=1)},
            {"userId": "c", "createdAt": TODAY},
            {"userId": "d", "createdAt": NOW},
            {"userId": "e", "createdAt": TODAY - timedelta(days=5)},
        ]
    )

    series = await SeriesBuilder(SafeAccessor(store), TZ).member_growth(NOW, days=3)

    assert [(p.date, p.count) for p in series] == [
        ("2026-10-17", 0),
        ("2026-10-18", 2),
        ("2026-10-19", 2),
    ]


@pytest.mark.asyncio
async def test_series_default_to_seven_days(store) -> None:
    builder = SeriesBuilder(SafeAccessor(store), TZ)

    growth = await builder.member_growth(NOW)
    flow = await builder.points_flow(NOW)

    assert len(growth) == 7
    assert len(flow) == 7
    assert growth[0].date == "2026-10-13"
    assert flow[-1].date == "2026-10-19"


@pytest.mark.asyncio
async def test_series_on_missing_collection_keeps_every_window(store) -> None:
    builder = SeriesBuilder(SafeAccessor(store), TZ)

    growth = await builder.member_growth(NOW, days=4)
    flow = await builder.points_flow(NOW, days=4)

    assert [p.count for p in growth] == [0, 0, 0, 0]
    assert [(p.earned, p.consumed) for p in flow] == [(0, 0)] * 4


@pytest.mark.asyncio
async def test_series_rejects_non_positive_days(store) -> None:
    builder = SeriesBuilder(SafeAccessor(store), TZ)
    with pytest.raises(InvalidParameter):
        await builder.member_growth(NOW, days=0)
    with pytest.raises(InvalidParameter):
        await builder.points_flow(NOW, days=-2)


@pytest.mark.asyncio
async def test_series_propagate_storage_failures(failing_store) -> None:
    broken = failing_store(
        users=StorageFailure("users", "network"),
        points_records=StorageFailure("points_records", "network"),
    )
    builder = SeriesBuilder(SafeAccessor(broken), TZ)

    with pytest.raises(StorageFailure):
        await builder.member_growth(NOW, days=2)
    with pytest.raises(StorageFailure):
        await builder.points_flow(NOW, days=2)
