from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from pressuremap.aggregation import (
    COARSE_POLICY, SMOOTHED_POLICY, SeriesPolicy, aggregate, average_grid,
    day_bounds, parse_day, resolve_range, series_points,
)
from pressuremap.exceptions import InvalidRange

UTC = timezone.utc
DAY = date(2025, 1, 1)
DAY_START = datetime(2025, 1, 1, tzinfo=UTC)
DAY_END = DAY_START + timedelta(days=1)


# ---- resolve_range ----

def test_full_day_by_default():
    assert resolve_range(DAY) == (DAY_START, DAY_END)


def test_hours_back():
    assert resolve_range(DAY, hours_back=2) == (DAY_END - timedelta(hours=2), DAY_END)


def test_hours_back_clamped_to_day_start():
    assert resolve_range(DAY, hours_back=30) == (DAY_START, DAY_END)


@pytest.mark.parametrize("hours", [24, 10**8, 10**30])
def test_huge_hours_back_is_whole_day(hours):
    assert resolve_range(DAY, hours_back=hours) == (DAY_START, DAY_END)


def test_hours_back_on_first_representable_day():
    first = date.min
    start = datetime.combine(first, datetime.min.time(), tzinfo=UTC)
    assert resolve_range(first, hours_back=10**6) == (start, start + timedelta(days=1))


@pytest.mark.parametrize("hours", [0, -3, None])
def test_non_positive_hours_back_ignored(hours):
    assert resolve_range(DAY, hours_back=hours) == (DAY_START, DAY_END)


def test_hours_back_wins_over_from_to():
    start, end = resolve_range(DAY, hours_back=1, from_="2025-01-01T02:00:00Z", to="2025-01-01T03:00:00Z")
    assert (start, end) == (DAY_END - timedelta(hours=1), DAY_END)


def test_from_and_to():
    start, end = resolve_range(DAY, from_="2025-01-01T10:00:00Z", to="2025-01-01T12:30:00+00:00")
    assert start == DAY_START + timedelta(hours=10)
    assert end == DAY_START + timedelta(hours=12, minutes=30)


def test_only_to():
    start, end = resolve_range(DAY, to="2025-01-01T06:00:00Z")
    assert (start, end) == (DAY_START, DAY_START + timedelta(hours=6))


@pytest.mark.parametrize("bad", ["garbage", "2024-12-31T23:59:00Z", "2025-01-02T00:00:00Z", ""])
def test_invalid_from_falls_back(bad):
    assert resolve_range(DAY, from_=bad)[0] == DAY_START


def test_to_before_from_is_dropped():
    start, end = resolve_range(DAY, from_="2025-01-01T10:00:00Z", to="2025-01-01T09:00:00Z")
    assert start == DAY_START + timedelta(hours=10)
    assert end == DAY_END


def test_to_equal_to_day_end_accepted():
    assert resolve_range(DAY, to="2025-01-02T00:00:00Z")[1] == DAY_END


def test_naive_bounds_use_given_timezone():
    seoul = ZoneInfo("Asia/Seoul")
    start, end = resolve_range(DAY, from_="2025-01-01T09:00:00", tz=seoul)
    assert start == datetime(2025, 1, 1, 9, tzinfo=seoul)
    assert end == datetime(2025, 1, 2, tzinfo=seoul)


def test_aware_bounds_are_converted():
    seoul = ZoneInfo("Asia/Seoul")
    # 2025-01-01T00:00Z == 09:00 KST
    start, _ = resolve_range(DAY, from_="2025-01-01T00:00:00Z", tz=seoul)
    assert start == datetime(2025, 1, 1, 9, tzinfo=seoul)
    assert start.utcoffset() == timedelta(hours=9)


def test_parse_day():
    assert parse_day("2025-01-01") == DAY
    assert parse_day(DAY) == DAY
    for bad in ["", None, "2025-13-01", "01/01/2025"]:
        with pytest.raises(InvalidRange):
            parse_day(bad)


def test_resolve_range_rejects_bad_day():
    with pytest.raises(InvalidRange):
        resolve_range("not-a-day")


def test_last_calendar_day_is_rejected():
    with pytest.raises(InvalidRange):
        day_bounds(date.max)
    with pytest.raises(InvalidRange):
        resolve_range(date.max, hours_back=2)


def test_day_before_last_calendar_day_is_fine():
    start, end = day_bounds(date(9999, 12, 30))
    assert end == datetime(9999, 12, 31, tzinfo=UTC)


# ---- average ----

def test_average_of_no_frames_is_empty(make_frame):
    assert average_grid([], DAY_START, DAY_END) == []
    late = make_frame(DAY_END, 10)
    assert average_grid([late], DAY_START, DAY_END) == []


def test_average_is_cellwise_and_truncated(make_frame):
    frames = [make_frame(DAY_START, 10), make_frame(DAY_START + timedelta(seconds=1), 21)]
    avg = average_grid(frames, DAY_START, DAY_END)
    assert len(avg) == 32 and len(avg[0]) == 32
    assert avg[0][0] == 15
    assert all(v == 15 for row in avg for v in row)


def test_range_is_half_open(make_frame):
    start = DAY_START + timedelta(hours=1)
    end = DAY_START + timedelta(hours=2)
    frames = [make_frame(start, 30), make_frame(end, 90)]
    assert average_grid(frames, start, end)[5][5] == 30


# ---- series ----

def test_series_max_per_minute(make_frame):
    t0 = DAY_START + timedelta(hours=8)
    frames = [
        make_frame(t0 + timedelta(seconds=5), peak=40),
        make_frame(t0 + timedelta(seconds=50), peak=70),
        make_frame(t0 + timedelta(minutes=1, seconds=1), peak=20),
        make_frame(t0 + timedelta(minutes=3), peak=55),
    ]
    pts = series_points(frames, DAY_START, DAY_END, COARSE_POLICY)
    assert [(p.bucket_time, p.value) for p in pts] == [
        (t0, 70),
        (t0 + timedelta(minutes=1), 20),
        (t0 + timedelta(minutes=3), 55),
    ]


def test_series_mean_policy(make_frame):
    frames = [make_frame(DAY_START + timedelta(minutes=i), peak=v) for i, v in enumerate([10, 20, 25])]
    pts = series_points(frames, DAY_START, DAY_END, SMOOTHED_POLICY)
    assert len(pts) == 1
    assert pts[0].value == pytest.approx(18.33)


def test_series_sorted_and_strictly_increasing(make_frame):
    times = [DAY_START + timedelta(seconds=s) for s in (400, 10, 250, 61, 130)]
    frames = [make_frame(t, peak=i) for i, t in enumerate(times)]
    pts = series_points(frames, DAY_START, DAY_END, COARSE_POLICY)
    stamps = [p.bucket_time for p in pts]
    assert stamps == sorted(set(stamps))
    assert len(stamps) == 5


def test_buckets_anchor_at_range_start(make_frame):
    start = DAY_START + timedelta(seconds=30)
    frames = [make_frame(DAY_START + timedelta(seconds=s), peak=s) for s in (40, 80, 95)]
    pts = series_points(frames, start, DAY_END, COARSE_POLICY)
    assert [(p.bucket_time, p.value) for p in pts] == [(start, 80), (start + timedelta(minutes=1), 95)]


def test_point_dict_uses_iso_with_offset(make_frame):
    pts = series_points([make_frame(DAY_START, peak=3)], DAY_START, DAY_END)
    assert pts[0].as_dict() == {"t": "2025-01-01T00:00:00+00:00", "v": 3}


def test_series_policy_validation():
    with pytest.raises(ValueError):
        SeriesPolicy(bucket_seconds=0)
    with pytest.raises(ValueError):
        SeriesPolicy(bucket_seconds=60, reducer="median")


# ---- aggregate ----

def test_aggregate_is_idempotent(make_frame):
    frames = [make_frame(DAY_START + timedelta(seconds=7 * i), value=i % 5, peak=i) for i in range(40)]
    a = aggregate(frames, DAY_START, DAY_END)
    b = aggregate(frames, DAY_START, DAY_END)
    assert a.average_grid == b.average_grid
    assert a.series_points == b.series_points
    assert not a.is_empty


def test_aggregate_empty_window(make_frame):
    window = aggregate([make_frame(DAY_START, 5)], DAY_END, DAY_END + timedelta(hours=1))
    assert window.is_empty
    assert window.series_points == []
