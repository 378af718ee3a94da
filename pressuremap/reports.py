"""
하루 단위 리포트 / CSV 내보내기.
PDF/DOCX 렌더링은 하지 않는다 (텍스트, CSV 만).
"""
from __future__ import annotations
import csv
import io
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .aggregation import SMOOTHED_POLICY, SeriesPoint, SeriesPolicy, day_bounds, series_points

TOP_REGIONS = 10


@dataclass
class DayReport:
    patient_id: int
    session_ids: List[int]
    day: date
    frame_count: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: timedelta = timedelta(0)
    max_pressure: int = 0
    min_pressure: int = 0
    max_peak_pressure: int = 0
    overall_average: float = 0.0
    average_contact_area: float = 0.0
    top_regions: List[Tuple[int, int, float]] = field(default_factory=list)
    trend: List[SeriesPoint] = field(default_factory=list)


def build_day_report(
    patient_id: int,
    session_ids: Sequence[int],
    day: date,
    frames: Iterable,
    top_n: int = TOP_REGIONS,
    trend_policy: SeriesPolicy = SMOOTHED_POLICY,
    tz: Optional[tzinfo] = None,
) -> DayReport:
    frames = sorted(frames, key=lambda f: f.timestamp)
    report = DayReport(patient_id=patient_id, session_ids=list(session_ids), day=day)
    if not frames:
        return report

    total = None
    for f in frames:
        g = np.asarray(f.grid, dtype=np.int64)
        total = g.copy() if total is None else total + g

    count = len(frames)
    cell_avg = total / count
    # 동률이면 row-major 순서 유지
    order = np.argsort(-cell_avg, axis=None, kind="stable")[:top_n]
    cols = cell_avg.shape[1]

    report.frame_count = count
    report.start_time = frames[0].timestamp
    report.end_time = frames[-1].timestamp
    if tz is not None:
        report.start_time = report.start_time.astimezone(tz)
        report.end_time = report.end_time.astimezone(tz)
    report.duration = report.end_time - report.start_time
    report.max_pressure = max(f.max_value for f in frames)
    report.min_pressure = min(f.min_value for f in frames)
    report.max_peak_pressure = max(f.peak_pressure for f in frames)
    report.overall_average = float(total.sum()) / (count * total.size)
    report.average_contact_area = sum(f.contact_area_percentage for f in frames) / count
    report.top_regions = [(int(i // cols), int(i % cols), float(cell_avg.flat[i])) for i in order]

    day_start, day_end = day_bounds(day, tz or frames[0].timestamp.tzinfo)
    report.trend = series_points(frames, day_start, day_end, trend_policy)
    return report


def render_text(report: DayReport, generated_at: Optional[datetime] = None) -> str:
    generated_at = generated_at or datetime.now()

    def hms(dt):
        return dt.strftime("%H:%M:%S") if dt else "-"

    lines = [
        f"Pressure Map Report for {report.day:%Y-%m-%d}",
        "=" * 40,
        f"Patient ID: {report.patient_id}",
        f"Sessions: {len(report.session_ids)}",
        f"Report Generated: {generated_at:%Y-%m-%d %H:%M:%S}",
        "=" * 40,
        f"Recording Start: {hms(report.start_time)}",
        f"Recording End: {hms(report.end_time)}",
        f"Total Duration: {report.duration}",
        f"Total Frames Recorded: {report.frame_count}",
        "-" * 40,
        f"Highest Pressure Found: {report.max_pressure}",
        f"Lowest Pressure Found: {report.min_pressure}",
        f"Max Peak Pressure Index: {report.max_peak_pressure}",
        f"Average Pressure: {report.overall_average:.2f}",
        f"Average Contact Area: {report.average_contact_area:.2f}%",
        "",
        f"High Pressure Regions (Top {len(report.top_regions)} Average Cells):",
        "-" * 40,
    ]
    for idx, (r, c, avg) in enumerate(report.top_regions, start=1):
        lines.append(f"{idx}: Row: {r}, Column: {c} - Average Pressure: {avg:.2f}")

    if report.trend:
        lines += ["", "Peak Pressure Trend (bucket average):", "-" * 40]
        lines += [f"{p.bucket_time:%H:%M} - {p.value}" for p in report.trend]

    return "\n".join(lines) + "\n"


def export_csv(frames: Iterable) -> str:
    """프레임당 32줄, 업로드 형식과 동일."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    for f in sorted(frames, key=lambda f: f.timestamp):
        writer.writerows(f.grid)
    return buf.getvalue()


__all__ = ["DayReport", "build_day_report", "render_text", "export_csv"]
