from __future__ import annotations

import time


def now_s() -> float:
    """Monotonic clock in seconds."""
    return time.monotonic()


def sleep_s(seconds: float) -> None:
    """Blocking sleep, patched out by tests that count reset timing."""
    time.sleep(seconds)
