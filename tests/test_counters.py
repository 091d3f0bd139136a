from __future__ import annotations

import numpy as np
import pytest

from perfcount import clock
from perfcount.counters import COUNTER_MAX, CounterOverflowError, checked_add


def test_counter_max_is_uint64_max() -> None:
    assert COUNTER_MAX == 2**64 - 1


def test_checked_add_sums_exactly() -> None:
    total = 0
    for size in (1, 4096, 0, 512, 10**12):
        total = checked_add(total, size, field="bytes")
    assert total == 1 + 4096 + 512 + 10**12


def test_checked_add_accepts_numpy_integers() -> None:
    assert checked_add(5, np.uint32(7), field="bytes") == 12


def test_checked_add_allows_exact_maximum() -> None:
    assert checked_add(COUNTER_MAX - 3, 3, field="bytes") == COUNTER_MAX


def test_checked_add_overflow_reports_operands() -> None:
    with pytest.raises(CounterOverflowError) as excinfo:
        checked_add(COUNTER_MAX - 3, 4, field="bytes")
    err = excinfo.value
    assert isinstance(err, OverflowError)
    assert err.field == "bytes"
    assert err.current == COUNTER_MAX - 3
    assert err.delta == 4


@pytest.mark.parametrize("bad", [-1, 1.5, "3", True])
def test_checked_add_rejects_non_unsigned(bad) -> None:
    with pytest.raises(ValueError):
        checked_add(0, bad, field="bytes")


def test_elapsed_never_negative() -> None:
    assert clock.elapsed_ns(100, 250) == 150
    assert clock.elapsed_ns(250, 100) == 0


def test_now_is_monotonic() -> None:
    readings = [clock.now_ns() for _ in range(100)]
    assert readings == sorted(readings)
