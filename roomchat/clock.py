"""Millisecond wall clock, injectable for tests."""

import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)
