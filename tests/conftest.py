from datetime import datetime, timezone

import pytest

from helpers import png_bytes


@pytest.fixture
def frame_png() -> bytes:
    return png_bytes()


@pytest.fixture
def black_png() -> bytes:
    return png_bytes(color=(0, 0, 0))


@pytest.fixture
def fixed_clock():
    instant = datetime(2024, 3, 15, 12, 30, 0, tzinfo=timezone.utc)
    return lambda: instant
