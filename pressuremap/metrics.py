from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import numpy as np

from .exceptions import InvalidGrid
from .regions import GRID_SIZE, ConnectedRegionAnalyzer

CELL_COUNT = GRID_SIZE * GRID_SIZE
CONTACT_THRESHOLD = 15
VALUE_MIN, VALUE_MAX = 0, 255


@dataclass(frozen=True)
class MetricsRecord:
    min: int
    max: int
    average: int
    contact_area_percentage: float
    peak_pressure: int

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def as_grid(grid) -> np.ndarray:
    """grid → (32, 32) int 배열. 크기가 다르면 InvalidGrid."""
    try:
        arr = np.asarray(grid, dtype=np.int64)
    except (TypeError, ValueError) as e:
        raise InvalidGrid(f"grid is not a numeric matrix: {e}") from e
    if arr.shape != (GRID_SIZE, GRID_SIZE):
        raise InvalidGrid(f"grid must be {GRID_SIZE}x{GRID_SIZE}, got shape {arr.shape}")
    return arr


def clamp_grid(grid) -> List[List[int]]:
    """수집 정책: 범위 밖 값은 거부하지 않고 [0,255] 로 clamp."""
    arr = np.clip(as_grid(grid), VALUE_MIN, VALUE_MAX)
    return arr.tolist()


def compute_metrics(
    grid,
    contact_threshold: int = CONTACT_THRESHOLD,
    analyzer: Optional[ConnectedRegionAnalyzer] = None,
) -> MetricsRecord:
    """
    32x32 grid 1장의 지표 계산.
      - average: 1024 셀 합 // 1024 (정수 절삭)
      - min/max: 실제 셀 값 기준 (0 으로 초기화하지 않음)
      - contact_area_percentage: threshold 초과 셀 비율(%)
      - peak_pressure: 면적 필터를 통과한 연결 영역의 최대값 (grid max 아님)
    """
    arr = as_grid(grid)
    analyzer = analyzer or ConnectedRegionAnalyzer()

    total = int(arr.sum())
    active = int(np.count_nonzero(arr > contact_threshold))

    return MetricsRecord(
        min=int(arr.min()),
        max=int(arr.max()),
        average=total // CELL_COUNT,
        contact_area_percentage=active / CELL_COUNT * 100.0,
        peak_pressure=analyzer.peak_pressure(arr),
    )


__all__ = ["CELL_COUNT", "CONTACT_THRESHOLD", "MetricsRecord", "as_grid", "clamp_grid", "compute_metrics"]
