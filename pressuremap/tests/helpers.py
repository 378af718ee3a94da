from collections import namedtuple

Frame = namedtuple("Frame", "timestamp grid peak_pressure")


def filled(value, size=32):
    return [[value] * size for _ in range(size)]


def blank():
    return filled(0)


def with_cells(cells, value, base=None):
    g = [row[:] for row in (base or blank())]
    for r, c in cells:
        g[r][c] = value
    return g


def csv_block(grid):
    return "\n".join(",".join(str(v) for v in row) for row in grid) + "\n"
