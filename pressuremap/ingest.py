"""
업로드 CSV → 32x32 행렬 블록 → 타임스탬프가 붙은 FrameSample.

CSV 형식: 한 줄 = 한 행, 32줄 = 한 프레임, 프레임은 시간순.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Iterator, List, Optional

from .aggregation import UTC
from .exceptions import InvalidUpload
from .metrics import CONTACT_THRESHOLD, VALUE_MAX, VALUE_MIN, MetricsRecord, as_grid, compute_metrics
from .regions import GRID_SIZE, ConnectedRegionAnalyzer

logger = logging.getLogger(__name__)

FRAMES_PER_SECOND = 15


@dataclass(frozen=True)
class FrameSample:
    """저장 전 프레임. metrics 는 생성 시 1회 계산."""
    timestamp: datetime
    grid: List[List[int]]
    metrics: MetricsRecord

    @classmethod
    def from_grid(cls, timestamp: datetime, grid, contact_threshold: int = CONTACT_THRESHOLD,
                  analyzer: Optional[ConnectedRegionAnalyzer] = None) -> "FrameSample":
        rows = as_grid(grid).tolist()
        return cls(timestamp=timestamp, grid=rows,
                   metrics=compute_metrics(rows, contact_threshold=contact_threshold, analyzer=analyzer))

    # PressureFrame 과 같은 속성 이름으로 노출 (집계/리포트가 둘 다 받음)
    @property
    def peak_pressure(self) -> int:
        return self.metrics.peak_pressure

    @property
    def min_value(self) -> int:
        return self.metrics.min

    @property
    def max_value(self) -> int:
        return self.metrics.max

    @property
    def average_pressure(self) -> int:
        return self.metrics.average

    @property
    def contact_area_percentage(self) -> float:
        return self.metrics.contact_area_percentage


def _parse_row(line: str) -> List[int]:
    row = [0] * GRID_SIZE
    for col, token in enumerate(line.split(",")):
        if col >= GRID_SIZE:
            break
        try:
            v = int(token.strip())
        except ValueError:
            # 숫자가 아니면 그 행은 여기서 끊는다 (나머지 셀 0)
            break
        row[col] = min(max(v, VALUE_MIN), VALUE_MAX)
    return row


def read_matrix_blocks(lines: Iterable[str]) -> Iterator[List[List[int]]]:
    """빈 줄 무시, 32행마다 행렬 1개. 마지막 미완성 블록은 버림."""
    block: List[List[int]] = []
    for line in lines:
        if isinstance(line, bytes):
            line = line.decode("utf-8-sig")
        if not line.strip():
            continue
        block.append(_parse_row(line.lstrip("\ufeff")))
        if len(block) == GRID_SIZE:
            yield block
            block = []
    if block:
        logger.warning("[ingest] dropping partial matrix block rows=%d", len(block))


def frame_interval(fps: int = FRAMES_PER_SECOND) -> timedelta:
    if fps <= 0:
        raise InvalidUpload(f"fps must be positive, got {fps}")
    return timedelta(milliseconds=1000 // fps)


def frame_timestamps(start: datetime, count: int, fps: int = FRAMES_PER_SECOND) -> List[datetime]:
    """i 번째 프레임 = start + (i+1) * (1000 // fps) ms."""
    step = frame_interval(fps)
    return [start + step * (i + 1) for i in range(count)]


def parse_upload_filename(filename: str) -> date:
    """'<ID>_<YYYYMMDD>.csv' → date."""
    base = os.path.basename(filename or "")
    stem, ext = os.path.splitext(base)
    if ext.lower() != ".csv":
        raise InvalidUpload("Only CSV files are allowed.")
    parts = stem.split("_")
    if len(parts) != 2:
        raise InvalidUpload("Filename format is incorrect. Please use ID_YYYYMMDD.csv format.")
    try:
        return datetime.strptime(parts[1], "%Y%m%d").date()
    except ValueError:
        raise InvalidUpload("Filename format is incorrect. Please use ID_YYYYMMDD.csv format.")


def session_start_for(day: date, start_time: Optional[str] = None, now: Optional[datetime] = None,
                      tz: tzinfo = UTC) -> datetime:
    """
    세션 시작 시각
      - now 지정(useCurrentTime): 날짜는 파일명, 시:분:초는 now
      - start_time 'HH:MM' : 해당 날짜의 그 시각
      - 그 외: 자정
    """
    if now is not None:
        return datetime.combine(day, time(now.hour, now.minute, now.second), tzinfo=tz)
    if start_time and start_time.strip():
        for fmt in ("%H:%M", "%H:%M:%S"):
            try:
                t = datetime.strptime(start_time.strip(), fmt).time()
            except ValueError:
                continue
            return datetime.combine(day, time(t.hour, t.minute), tzinfo=tz)
    return datetime.combine(day, time.min, tzinfo=tz)


def build_frames(
    matrices: Iterable[List[List[int]]],
    start: datetime,
    fps: int = FRAMES_PER_SECOND,
    contact_threshold: int = CONTACT_THRESHOLD,
    analyzer: Optional[ConnectedRegionAnalyzer] = None,
) -> List[FrameSample]:
    analyzer = analyzer or ConnectedRegionAnalyzer()
    matrices = list(matrices)
    stamps = frame_timestamps(start, len(matrices), fps)
    return [
        FrameSample.from_grid(ts, m, contact_threshold=contact_threshold, analyzer=analyzer)
        for ts, m in zip(stamps, matrices)
    ]


__all__ = [
    "FRAMES_PER_SECOND", "FrameSample", "read_matrix_blocks", "frame_interval", "frame_timestamps",
    "parse_upload_filename", "session_start_for", "build_frames",
]
