"""
시간 구간 집계 (평균 맵 / 그래프 시계열).

프레임은 ``timestamp``, ``grid``, ``peak_pressure`` 속성만 있으면 된다
(PressureFrame 모델, FrameSample 모두 해당).
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from dateutil import parser as dtparser

from .exceptions import InvalidRange

UTC = timezone.utc


def _reduce_max(values: Sequence[int]):
    return max(values)


def _reduce_mean(values: Sequence[int]):
    return round(sum(values) / len(values), 2)


REDUCERS: Dict[str, Callable[[Sequence[int]], Any]] = {
    "max": _reduce_max,
    "mean": _reduce_mean,
}


@dataclass(frozen=True)
class SeriesPolicy:
    """버킷 폭(초) + 버킷 내 대표값 선택 방식 ("max" | "mean")."""
    bucket_seconds: int
    reducer: str = "max"

    def __post_init__(self):
        if self.bucket_seconds <= 0:
            raise ValueError("bucket_seconds must be positive")
        if self.reducer not in REDUCERS:
            raise ValueError(f"unknown reducer: {self.reducer!r}")


# 그래프 화면: 1분 버킷, 버킷 내 최대 peak (짧은 고압 구간이 묻히지 않게)
COARSE_POLICY = SeriesPolicy(bucket_seconds=60, reducer="max")
# 리포트 추세: 15분 버킷, 버킷 내 평균 peak
SMOOTHED_POLICY = SeriesPolicy(bucket_seconds=900, reducer="mean")


@dataclass(frozen=True)
class SeriesPoint:
    bucket_time: datetime
    value: Any

    def as_dict(self) -> Dict[str, Any]:
        return {"t": self.bucket_time.isoformat(), "v": self.value}


@dataclass(frozen=True)
class AggregateWindow:
    range_start: datetime
    range_end: datetime
    average_grid: List[List[int]] = field(default_factory=list)
    series_points: List[SeriesPoint] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.average_grid


# ---- range ----

def parse_day(value) -> date:
    """'YYYY-MM-DD' → date. 파싱 불가 시 InvalidRange."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not str(value).strip():
        raise InvalidRange("day parameter required (yyyy-MM-dd)")
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidRange("Invalid day format")


def day_bounds(day: date, tz: tzinfo = UTC) -> Tuple[datetime, datetime]:
    """[자정, 다음날 자정). 다음날 자정을 표현할 수 없는 날짜(date.max)는 InvalidRange."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    try:
        end = start + timedelta(days=1)
    except OverflowError:
        raise InvalidRange("day is out of the supported range")
    return start, end


def _parse_bound(value: Optional[str], tz: tzinfo) -> Optional[datetime]:
    """from/to 문자열 파싱. 실패하면 None (기본값 유지)."""
    if value is None or not str(value).strip():
        return None
    try:
        dt = dtparser.isoparse(str(value).strip())
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def resolve_range(
    day,
    hours_back: Optional[int] = None,
    from_: Optional[str] = None,
    to: Optional[str] = None,
    tz: tzinfo = UTC,
) -> Tuple[datetime, datetime]:
    """
    우선순위
      1) hours_back > 0  → [day_end - N시간, day_end), day_start 이전으로는 clamp
      2) from / to       → 각각 독립 검증, 범위 밖/파싱 실패는 조용히 무시
      3) 하루 전체       → [day_start, day_end)
    """
    day = parse_day(day)
    day_start, day_end = day_bounds(day, tz)
    range_start, range_end = day_start, day_end

    if hours_back is not None and hours_back > 0:
        # 24시간 이상은 전부 day_start
        range_start = day_end - timedelta(hours=min(hours_back, 24))
        return range_start, range_end

    parsed_from = _parse_bound(from_, tz)
    if parsed_from is not None and day_start <= parsed_from < day_end:
        range_start = parsed_from

    parsed_to = _parse_bound(to, tz)
    if parsed_to is not None and range_start < parsed_to <= day_end:
        range_end = parsed_to

    return range_start, range_end


# ---- aggregate ----

def frames_in_range(frames: Iterable, range_start: datetime, range_end: datetime) -> list:
    return [f for f in frames if range_start <= f.timestamp < range_end]


def average_grid(frames: Iterable, range_start: datetime, range_end: datetime) -> List[List[int]]:
    """구간 내 프레임의 셀별 평균 (정수 절삭). 프레임 없으면 []."""
    selected = frames_in_range(frames, range_start, range_end)
    if not selected:
        return []
    total = np.zeros_like(np.asarray(selected[0].grid, dtype=np.int64))
    for f in selected:
        total += np.asarray(f.grid, dtype=np.int64)
    return (total // len(selected)).tolist()


def series_points(
    frames: Iterable,
    range_start: datetime,
    range_end: datetime,
    policy: SeriesPolicy = COARSE_POLICY,
) -> List[SeriesPoint]:
    """range_start 기준 고정 폭 버킷으로 peak_pressure 를 다운샘플."""
    selected = sorted(frames_in_range(frames, range_start, range_end), key=lambda f: f.timestamp)
    width = timedelta(seconds=policy.bucket_seconds)
    reduce = REDUCERS[policy.reducer]

    points: List[SeriesPoint] = []
    bucket_idx = None
    values: List[int] = []
    for f in selected:
        idx = (f.timestamp - range_start) // width
        if idx != bucket_idx:
            if values:
                points.append(SeriesPoint(range_start + bucket_idx * width, reduce(values)))
            bucket_idx, values = idx, []
        values.append(int(f.peak_pressure))
    if values:
        points.append(SeriesPoint(range_start + bucket_idx * width, reduce(values)))
    return points


def aggregate(
    frames: Iterable,
    range_start: datetime,
    range_end: datetime,
    policy: SeriesPolicy = COARSE_POLICY,
) -> AggregateWindow:
    frames = list(frames)
    return AggregateWindow(
        range_start=range_start,
        range_end=range_end,
        average_grid=average_grid(frames, range_start, range_end),
        series_points=series_points(frames, range_start, range_end, policy),
    )


__all__ = [
    "SeriesPolicy", "SeriesPoint", "AggregateWindow", "COARSE_POLICY", "SMOOTHED_POLICY",
    "parse_day", "day_bounds", "resolve_range", "frames_in_range",
    "average_grid", "series_points", "aggregate",
]
