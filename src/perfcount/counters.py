"""Counter value types and the checked addition used by every accumulator."""

from __future__ import annotations

import logging
from typing import NewType

import numpy as np

logger = logging.getLogger(__name__)

Instant = NewType("Instant", int)
Accumulator = NewType("Accumulator", int)

# Accumulators behave like 64-bit unsigned machine counters.
COUNTER_MAX: int = int(np.iinfo(np.uint64).max)


class CounterOverflowError(OverflowError):
    """Raised when an accumulator addition would exceed :data:`COUNTER_MAX`."""

    def __init__(self, field: str, current: int, delta: int) -> None:
        super().__init__(f"overflow: {field}={current} + {delta} exceeds {COUNTER_MAX}")
        self.field = field
        self.current = current
        self.delta = delta


def checked_add(current: int, delta: int, *, field: str) -> int:
    """Return ``current + delta`` or raise :class:`CounterOverflowError`.

    Parameters
    ----------
    current:
        Present value of the accumulator.
    delta:
        Non-negative amount to add. Booleans and negative values are rejected
        with :class:`ValueError` since an unsigned counter cannot hold them.
    field:
        Name of the accumulator, reported in the overflow error.
    """

    if isinstance(delta, bool) or not isinstance(delta, (int, np.integer)):
        raise ValueError(f"{field}: expected an unsigned integer, got {delta!r}")
    delta = int(delta)
    if delta < 0:
        raise ValueError(f"{field}: expected an unsigned integer, got {delta}")
    total = int(current) + delta
    if total > COUNTER_MAX:
        logger.error("Counter %s overflowed (%d + %d)", field, current, delta)
        raise CounterOverflowError(field, int(current), delta)
    return total


__all__ = [
    "Instant",
    "Accumulator",
    "COUNTER_MAX",
    "CounterOverflowError",
    "checked_add",
]
