"""Monotonic time base shared by every recorder."""

from __future__ import annotations

import time

from .counters import Instant


def now_ns() -> Instant:
    return Instant(time.perf_counter_ns())


def elapsed_ns(since: int, now: int) -> int:
    """Nanoseconds from ``since`` to ``now``, floored at zero."""

    return max(0, now - since)


__all__ = ["now_ns", "elapsed_ns"]
