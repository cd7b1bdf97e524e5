from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from memberdash.errors import InvalidParameter
from memberdash.windows import day_windows, local_midnight, today_window

TZ = ZoneInfo("Asia/Shanghai")
NOW = datetime(2026, 10, 19, 15, 30, tzinfo=TZ)


def test_day_windows_cover_trailing_days_oldest_first() -> None:
    windows = day_windows(3, NOW, TZ)

    assert [w.label for w in windows] == ["2026-10-17", "2026-10-18", "2026-10-19"]
    assert windows[-1].start == datetime(2026, 10, 19, tzinfo=TZ)
    assert windows[-1].end == datetime(2026, 10, 20, tzinfo=TZ)
    for w in windows:
        assert w.end - w.start == timedelta(days=1)


def test_day_windows_are_contiguous_and_increasing() -> None:
    windows = day_windows(30, NOW, TZ)

    assert len(windows) == 30
    for prev, cur in zip(windows, windows[1:]):
        assert prev.end == cur.start
        assert prev.start < cur.start


def test_day_windows_single_day_is_today() -> None:
    w = today_window(NOW, TZ)
    assert w.start == datetime(2026, 10, 19, tzinfo=TZ)
    assert w.end == datetime(2026, 10, 20, tzinfo=TZ)


def test_day_windows_use_local_date_not_utc() -> None:
    # 17:00 UTC on the 18th is already 01:00 on the 19th in Shanghai.
    now = datetime(2026, 10, 18, 17, 0, tzinfo=UTC)
    assert day_windows(1, now, TZ)[0].label == "2026-10-19"


def test_naive_now_is_read_as_local_time() -> None:
    assert local_midnight(datetime(2026, 10, 19, 0, 5), TZ) == datetime(2026, 10, 19, tzinfo=TZ)


def test_day_windows_stay_on_midnight_across_dst_change() -> None:
    tz = ZoneInfo("America/New_York")
    now = datetime(2026, 11, 3, 12, 0, tzinfo=tz)
    windows = day_windows(4, now, tz)

    for prev, cur in zip(windows, windows[1:]):
        assert prev.end == cur.start
    for w in windows:
        assert (w.start.hour, w.start.minute) == (0, 0)
    assert [w.label for w in windows] == ["2026-10-31", "2026-11-01", "2026-11-02", "2026-11-03"]


@pytest.mark.parametrize("bad", [0, -1, True, 1.5, "7", None])
def test_day_windows_reject_non_positive_or_non_int(bad) -> None:
    with pytest.raises(InvalidParameter):
        day_windows(bad, NOW, TZ)


def test_day_windows_reject_span_before_first_calendar_day() -> None:
    with pytest.raises(InvalidParameter) as excinfo:
        day_windows(1_000_000, NOW, TZ)
    assert excinfo.value.value == 1_000_000
