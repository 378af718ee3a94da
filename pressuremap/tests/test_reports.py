from datetime import date, datetime, timedelta, timezone

import pytest

from pressuremap.aggregation import SeriesPolicy
from pressuremap.ingest import FrameSample
from pressuremap.reports import build_day_report, export_csv, render_text

from .helpers import filled, with_cells

UTC = timezone.utc
DAY = date(2025, 1, 1)
T0 = datetime(2025, 1, 1, 8, tzinfo=UTC)


@pytest.fixture
def samples():
    hot = with_cells([(4, c) for c in range(12)], 200, base=filled(20))
    return [
        FrameSample.from_grid(T0, filled(20)),
        FrameSample.from_grid(T0 + timedelta(minutes=20), hot),
        FrameSample.from_grid(T0 + timedelta(minutes=5), filled(30)),
    ]


def test_empty_report():
    report = build_day_report(1, [3], DAY, [])
    assert report.frame_count == 0
    assert report.top_regions == []
    assert report.start_time is None
    assert "Total Frames Recorded: 0" in render_text(report)


def test_report_statistics(samples):
    report = build_day_report(9, [1, 2], DAY, samples, top_n=5)
    assert report.frame_count == 3
    assert report.start_time == T0
    assert report.end_time == T0 + timedelta(minutes=20)
    assert report.duration == timedelta(minutes=20)
    assert report.max_pressure == 200
    assert report.min_pressure == 20
    assert report.max_peak_pressure == 200
    expected_total = 1024 * 20 + 1024 * 30 + (1012 * 20 + 12 * 200)
    assert report.overall_average == pytest.approx(expected_total / (3 * 1024))
    assert report.average_contact_area == pytest.approx(100.0)


def test_top_regions_are_hottest_cells_in_row_major_order(samples):
    report = build_day_report(9, [1], DAY, samples, top_n=3)
    assert [(r, c) for r, c, _ in report.top_regions] == [(4, 0), (4, 1), (4, 2)]
    assert report.top_regions[0][2] == pytest.approx((20 + 30 + 200) / 3)


def test_trend_uses_bucket_average(samples):
    report = build_day_report(9, [1], DAY, samples, trend_policy=SeriesPolicy(bucket_seconds=3600, reducer="mean"))
    assert len(report.trend) == 1
    assert report.trend[0].bucket_time == T0
    assert report.trend[0].value == pytest.approx(round((20 + 30 + 200) / 3, 2))


def test_render_text(samples):
    text = render_text(build_day_report(9, [1, 2], DAY, samples), generated_at=datetime(2025, 1, 2, 9, 0))
    assert text.startswith("Pressure Map Report for 2025-01-01\n")
    assert "Patient ID: 9" in text
    assert "Sessions: 2" in text
    assert "Recording Start: 08:00:00" in text
    assert "Max Peak Pressure Index: 200" in text
    assert "1: Row: 4, Column: 0 - Average Pressure: 83.33" in text


def test_export_csv_orders_frames(samples):
    out = export_csv(samples).splitlines()
    assert len(out) == 3 * 32
    assert out[0] == ",".join(["20"] * 32)
    assert out[32] == ",".join(["30"] * 32)
    assert out[64 + 4].startswith("200,200")
