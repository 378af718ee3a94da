from __future__ import annotations
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

GRID_SIZE = 32
MIN_REGION_AREA = 10

# 상하좌우 (대각선 제외)
_NEIGHBORS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class Region(NamedTuple):
    size: int
    max_value: int
    origin: Tuple[int, int]


class ConnectedRegionAnalyzer:
    """
    양수(>0) 셀의 4-연결 영역을 flood fill 로 찾는다.

    - 재귀 대신 명시적 stack 사용
    - push 시점에 visited 마킹 → 같은 셀이 stack 에 두 번 들어가지 않음
    - visited 마스크/stack 은 인스턴스에 두고 프레임마다 재사용
      (배치 업로드 시 프레임 수천 개를 연속 처리)

    인스턴스는 스레드 간 공유하지 않는다.
    """

    def __init__(self, min_area: int = MIN_REGION_AREA, size: int = GRID_SIZE):
        self.min_area = int(min_area)
        self.size = int(size)
        self._visited = np.zeros((self.size, self.size), dtype=bool)
        self._stack: List[Tuple[int, int]] = []

    def _fill(self, data: np.ndarray, r0: int, c0: int) -> Region:
        visited = self._visited
        stack = self._stack
        n = self.size

        stack.append((r0, c0))
        visited[r0, c0] = True
        area = 0
        peak = 0

        while stack:
            r, c = stack.pop()
            area += 1
            v = int(data[r, c])
            if v > peak:
                peak = v
            for dr, dc in _NEIGHBORS:
                nr, nc = r + dr, c + dc
                if 0 <= nr < n and 0 <= nc < n and not visited[nr, nc] and data[nr, nc] > 0:
                    visited[nr, nc] = True
                    stack.append((nr, nc))

        return Region(size=area, max_value=peak, origin=(r0, c0))

    def find_regions(self, grid) -> List[Region]:
        """모든 양수 연결 영역 (크기 필터 없음)."""
        data = np.asarray(grid)
        self._visited.fill(False)
        self._stack.clear()

        regions: List[Region] = []
        # 양수 셀 좌표만 순회 (row-major)
        for r, c in zip(*np.nonzero(data > 0)):
            if not self._visited[r, c]:
                regions.append(self._fill(data, int(r), int(c)))
        return regions

    def peak_pressure(self, grid) -> int:
        """최소 면적(min_area) 이상인 영역들 중 최대 셀 값. 없으면 0."""
        best = 0
        for region in self.find_regions(grid):
            if region.size >= self.min_area and region.max_value > best:
                best = region.max_value
        return best


def peak_pressure(grid, min_area: int = MIN_REGION_AREA,
                  analyzer: Optional[ConnectedRegionAnalyzer] = None) -> int:
    analyzer = analyzer or ConnectedRegionAnalyzer(min_area=min_area)
    return analyzer.peak_pressure(grid)


__all__ = ["GRID_SIZE", "MIN_REGION_AREA", "Region", "ConnectedRegionAnalyzer", "peak_pressure"]
