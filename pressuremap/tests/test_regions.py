import numpy as np
import pytest
from scipy import ndimage

from pressuremap.regions import ConnectedRegionAnalyzer, MIN_REGION_AREA, peak_pressure

from .helpers import blank, filled, with_cells


def row_cells(row, start, length):
    return [(row, c) for c in range(start, start + length)]


def test_empty_grid_has_no_peak():
    assert peak_pressure(blank()) == 0
    assert ConnectedRegionAnalyzer().find_regions(blank()) == []


def test_region_at_threshold_counts():
    grid = with_cells(row_cells(5, 0, MIN_REGION_AREA), 80)
    assert peak_pressure(grid) == 80


def test_region_below_threshold_ignored():
    grid = with_cells(row_cells(5, 0, MIN_REGION_AREA - 1), 80)
    assert np.max(grid) == 80
    assert peak_pressure(grid) == 0


def test_highest_qualifying_region_wins():
    grid = with_cells(row_cells(2, 0, 12), 60)
    grid = with_cells(row_cells(20, 5, 15), 140, base=grid)
    assert peak_pressure(grid) == 140


def test_isolated_spike_does_not_count():
    grid = with_cells(row_cells(10, 0, 20), 40)
    grid[30][30] = 255
    assert peak_pressure(grid) == 40


def test_max_inside_region_is_reported():
    grid = with_cells(row_cells(3, 3, 10), 20)
    grid[3][7] = 199
    assert peak_pressure(grid) == 199


def test_diagonal_cells_are_not_connected():
    grid = with_cells([(i, i) for i in range(12)], 90)
    regions = ConnectedRegionAnalyzer().find_regions(grid)
    assert len(regions) == 12
    assert all(r.size == 1 for r in regions)
    assert peak_pressure(grid) == 0


def test_full_grid_is_one_region():
    regions = ConnectedRegionAnalyzer().find_regions(filled(7))
    assert len(regions) == 1
    assert regions[0].size == 1024
    assert regions[0].max_value == 7


def test_snake_region_is_single_component():
    # 'ㄹ' 모양으로 꺾이는 영역
    cells = row_cells(0, 0, 10) + [(1, 9)] + row_cells(2, 0, 10)
    regions = ConnectedRegionAnalyzer().find_regions(with_cells(cells, 30))
    assert [r.size for r in regions] == [21]


def test_custom_min_area():
    grid = with_cells(row_cells(0, 0, 4), 50)
    assert ConnectedRegionAnalyzer(min_area=4).peak_pressure(grid) == 50
    assert ConnectedRegionAnalyzer(min_area=5).peak_pressure(grid) == 0


def test_analyzer_reuse_resets_state():
    analyzer = ConnectedRegionAnalyzer()
    big = with_cells(row_cells(1, 0, 30), 120)
    small = with_cells(row_cells(1, 0, 3), 120)
    assert analyzer.peak_pressure(big) == 120
    assert analyzer.peak_pressure(small) == 0
    assert analyzer.peak_pressure(big) == 120


@pytest.mark.parametrize("seed", range(8))
def test_matches_scipy_labelling(seed):
    rng = np.random.default_rng(seed)
    grid = rng.integers(1, 256, size=(32, 32))
    grid[rng.random((32, 32)) < 0.55] = 0

    labels, n = ndimage.label(grid > 0)
    expected_sizes = sorted(int((labels == k).sum()) for k in range(1, n + 1))
    expected_peak = 0
    for k in range(1, n + 1):
        mask = labels == k
        if mask.sum() >= MIN_REGION_AREA:
            expected_peak = max(expected_peak, int(grid[mask].max()))

    analyzer = ConnectedRegionAnalyzer()
    assert sorted(r.size for r in analyzer.find_regions(grid)) == expected_sizes
    assert analyzer.peak_pressure(grid) == expected_peak
