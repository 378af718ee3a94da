import pytest

from pressuremap.exceptions import InvalidGrid
from pressuremap.metrics import MetricsRecord, clamp_grid, compute_metrics

from .helpers import blank, filled, with_cells


def test_all_zero_grid():
    m = compute_metrics(blank())
    assert m == MetricsRecord(min=0, max=0, average=0, contact_area_percentage=0.0, peak_pressure=0)


def test_uniform_grid():
    m = compute_metrics(filled(50))
    assert (m.min, m.max, m.average) == (50, 50, 50)
    assert m.contact_area_percentage == pytest.approx(100.0)
    assert m.peak_pressure == 50


def test_min_comes_from_cells_not_zero():
    grid = filled(7)
    grid[0][0] = 9
    m = compute_metrics(grid)
    assert m.min == 7
    assert m.max == 9


def test_average_truncates():
    assert compute_metrics(with_cells([(0, 0)], 255)).average == 0
    grid = with_cells([(0, c) for c in range(9)], 255)   # 2295
    assert compute_metrics(grid).average == 2295 // 1024


def test_contact_area_is_strictly_above_threshold():
    grid = with_cells([(0, c) for c in range(32)], 15)
    grid = with_cells([(1, c) for c in range(32)], 16, base=grid)
    m = compute_metrics(grid)
    assert m.contact_area_percentage == pytest.approx(32 / 1024 * 100)

    m0 = compute_metrics(grid, contact_threshold=0)
    assert m0.contact_area_percentage == pytest.approx(64 / 1024 * 100)


def test_peak_pressure_ignores_small_hot_spot():
    grid = with_cells([(10, c) for c in range(20)], 40)
    grid[31][31] = 255
    m = compute_metrics(grid)
    assert m.max == 255
    assert m.peak_pressure == 40


def test_metrics_are_deterministic():
    grid = with_cells([(r, 4) for r in range(15)], 120)
    assert compute_metrics(grid) == compute_metrics(grid)


@pytest.mark.parametrize("grid", [
    [[0] * 32 for _ in range(31)],
    [[0] * 31 for _ in range(32)],
    [[0] * 32 for _ in range(31)] + [[0] * 5],
    [],
])
def test_wrong_shape_rejected(grid):
    with pytest.raises(InvalidGrid):
        compute_metrics(grid)


def test_invalid_grid_is_value_error():
    with pytest.raises(ValueError):
        compute_metrics([["x"] * 32] * 32)


def test_clamp_grid():
    grid = filled(10)
    grid[0][0] = -5
    grid[1][1] = 300
    out = clamp_grid(grid)
    assert out[0][0] == 0
    assert out[1][1] == 255
    assert out[2][2] == 10


def test_as_dict_keys():
    assert set(compute_metrics(blank()).as_dict()) == {
        "min", "max", "average", "contact_area_percentage", "peak_pressure",
    }
