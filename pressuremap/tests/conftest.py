from datetime import datetime, timezone

import pytest

from .helpers import Frame, filled


@pytest.fixture
def day_start():
    return datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def make_frame():
    def _make(ts, value=0, peak=None):
        return Frame(timestamp=ts, grid=filled(value), peak_pressure=value if peak is None else peak)
    return _make
