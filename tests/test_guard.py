"""Scoped guards assembled by ``impl_write``."""

from __future__ import annotations

import copy
import gc
import logging
import os
import time
from dataclasses import dataclass

import pytest

from perfcount.counters import COUNTER_MAX, Accumulator, CounterOverflowError, Instant
from perfcount.metrics.guard import (
    GuardReading,
    GuardStateError,
    ScopedInstrumentationGuard,
    impl_write,
)
from perfcount.metrics.templates import FieldBindingError

LocalGuard = impl_write("LocalGuard")


@dataclass
class Sink:
    op_ns: Accumulator = Accumulator(0)
    op_bytes: Accumulator = Accumulator(0)
    label: str = ""


SinkGuard = impl_write("SinkGuard", owner=Sink, time_field="op_ns", size_field="op_bytes")
TimeOnlyGuard = impl_write("TimeOnlyGuard", owner=Sink, time_field="op_ns")


class _Abort(Exception):
    pass


def test_assembled_type_has_named_recorders() -> None:
    guard_type = impl_write(
        "CustomGuard",
        start_record_fn="begin",
        record_time_fn="stop_clock",
        record_size_fn="add_size",
    )
    assert issubclass(guard_type, ScopedInstrumentationGuard)
    assert guard_type.__name__ == "CustomGuard"
    for name in ("begin", "stop_clock", "add_size"):
        assert callable(getattr(guard_type, name))


def test_construction_marks_start_and_zeroes_locals(fake_clock) -> None:
    guard = LocalGuard(4096)
    assert guard.start_time == fake_clock.now
    assert guard.elapsed_time == 0
    assert guard.total_size == 0
    assert not guard.finalized
    guard.finalize()


def test_local_guard_reading_after_scope(fake_clock) -> None:
    with LocalGuard(4096) as guard:
        fake_clock.advance(1_500)
    assert guard.finalized
    assert guard.reading() == GuardReading(elapsed_ns=1_500, size=4096)


def test_guard_forwards_into_aggregator(fake_clock) -> None:
    sink = Sink()
    with SinkGuard(4096, sink):
        fake_clock.advance(10_000_000)
    with SinkGuard(100, sink):
        fake_clock.advance(5)
    assert sink.op_ns == 10_000_005
    assert sink.op_bytes == 4196


def test_guard_finalizes_on_exception(fake_clock) -> None:
    sink = Sink()
    with pytest.raises(_Abort):
        with SinkGuard(512, sink):
            fake_clock.advance(300)
            raise _Abort()
    assert (sink.op_ns, sink.op_bytes) == (300, 512)


def test_guard_finalizes_on_early_return(fake_clock) -> None:
    sink = Sink()

    def operation(stop_early: bool) -> str:
        with SinkGuard(64, sink):
            fake_clock.advance(20)
            if stop_early:
                return "early"
            fake_clock.advance(20)
        return "late"

    assert operation(True) == "early"
    assert operation(False) == "late"
    assert sink.op_ns == 60
    assert sink.op_bytes == 128


def test_unentered_guard_finalizes_when_collected(fake_clock) -> None:
    sink = Sink()
    guard = SinkGuard(32, sink)
    fake_clock.advance(7)
    del guard
    gc.collect()
    assert (sink.op_ns, sink.op_bytes) == (7, 32)


def test_time_only_binding_leaves_size_alone(fake_clock) -> None:
    sink = Sink()
    with TimeOnlyGuard(999, sink) as guard:
        fake_clock.advance(11)
    assert sink.op_ns == 11
    assert sink.op_bytes == 0
    assert guard.reading().size == 999


def test_double_finalize_is_rejected() -> None:
    guard = LocalGuard(1)
    guard.finalize()
    with pytest.raises(GuardStateError):
        guard.finalize()
    with pytest.raises(GuardStateError):
        with guard:
            pass


def test_reading_before_finalize_is_rejected() -> None:
    guard = LocalGuard(1)
    with pytest.raises(GuardStateError):
        guard.reading()
    guard.finalize()


def test_guards_cannot_be_copied() -> None:
    guard = LocalGuard(1)
    with pytest.raises(TypeError):
        copy.copy(guard)
    with pytest.raises(TypeError):
        copy.deepcopy(guard)
    guard.finalize()


def test_forwarding_overflow_mutates_nothing(fake_clock) -> None:
    sink = Sink(op_bytes=Accumulator(COUNTER_MAX - 1))
    guard = SinkGuard(2, sink)
    fake_clock.advance(50)
    with pytest.raises(CounterOverflowError):
        guard.finalize()
    assert sink.op_ns == 0
    assert sink.op_bytes == COUNTER_MAX - 1
    assert guard.finalized


def test_overflow_while_collected_aborts(fake_clock, monkeypatch, caplog) -> None:
    aborts = []
    monkeypatch.setattr(os, "abort", lambda: aborts.append(True))
    sink = Sink(op_bytes=Accumulator(COUNTER_MAX))
    guard = SinkGuard(1, sink)
    fake_clock.advance(4)
    with caplog.at_level(logging.CRITICAL, logger="perfcount.metrics.guard"):
        del guard
        gc.collect()
    assert aborts == [True]
    assert "SinkGuard overflowed" in caplog.text
    assert (sink.op_ns, sink.op_bytes) == (0, COUNTER_MAX)


def test_bound_guard_requires_matching_target() -> None:
    with pytest.raises(TypeError):
        SinkGuard(1)
    with pytest.raises(TypeError):
        SinkGuard(1, object())
    with pytest.raises(TypeError):
        LocalGuard(1, Sink())


def test_negative_size_is_rejected() -> None:
    with pytest.raises(ValueError):
        LocalGuard(-1)


def test_base_class_cannot_be_instantiated() -> None:
    with pytest.raises(TypeError):
        ScopedInstrumentationGuard(1)


def test_owner_fields_are_checked() -> None:
    with pytest.raises(FieldBindingError):
        impl_write("Bad", owner=Sink, time_field="missing")
    with pytest.raises(FieldBindingError):
        impl_write("Bad", owner=Sink, size_field="label")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"time_field": "op_ns"},
        {"owner": Sink},
        {"record_time_fn": "finalize"},
        {"start_record_fn": "x", "record_time_fn": "x"},
    ],
)
def test_invalid_assembly_arguments(kwargs) -> None:
    with pytest.raises(ValueError):
        impl_write("Bad", **kwargs)


def test_scenario_real_sleep_and_size() -> None:
    sink = Sink()
    with SinkGuard(4096, sink):
        time.sleep(0.01)
    assert sink.op_bytes == 4096
    assert 10_000_000 <= sink.op_ns < 1_000_000_000


def test_guard_start_is_reference_instant(fake_clock) -> None:
    guard = LocalGuard(0)
    assert isinstance(guard.start_time, int)
    fake_clock.advance(3)
    guard.finalize()
    assert guard.start_time == Instant(fake_clock.now)
