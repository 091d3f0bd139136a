"""Read/write counters for a block store, built from the generated recorders."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict

from ..features import require_execution_metrics

require_execution_metrics(__name__)

from .. import clock  # noqa: E402
from ..counters import Accumulator, Instant, checked_add  # noqa: E402
from .guard import ScopedInstrumentationGuard, impl_write  # noqa: E402
from .templates import (  # noqa: E402
    define_record_size_function,
    define_record_time_function,
    define_record_with_elapsed_time_function,
    define_start_function,
)


def _now() -> Instant:
    return clock.now_ns()


@dataclass
class IoMetrics:
    """Cumulative read and write timings, byte counts and operation counts.

    Instances are single-owner; callers sharing one across threads must add
    their own locking.
    """

    read_checkpoint: Instant = field(default_factory=_now)
    write_checkpoint: Instant = field(default_factory=_now)
    read_time_ns: Accumulator = Accumulator(0)
    write_time_ns: Accumulator = Accumulator(0)
    read_bytes: Accumulator = Accumulator(0)
    write_bytes: Accumulator = Accumulator(0)
    read_ops: Accumulator = Accumulator(0)
    write_ops: Accumulator = Accumulator(0)

    start_read = define_start_function("read_checkpoint")
    record_read = define_record_with_elapsed_time_function("read_time_ns", "read_checkpoint")
    record_read_bytes = define_record_size_function("read_bytes")

    start_write = define_start_function("write_checkpoint")
    record_write_time = define_record_time_function("write_time_ns", "write_checkpoint")
    record_write_bytes = define_record_size_function("write_bytes")

    def measure_read(self, size: int) -> ScopedInstrumentationGuard:
        """Guard for one read of ``size`` bytes, finalizing into this instance."""

        guard = ReadGuard(size, self)
        self.read_ops = checked_add(self.read_ops, 1, field="read_ops")
        return guard

    def measure_write(self, size: int) -> ScopedInstrumentationGuard:
        """Guard for one write of ``size`` bytes, finalizing into this instance."""

        guard = WriteGuard(size, self)
        self.write_ops = checked_add(self.write_ops, 1, field="write_ops")
        return guard

    def snapshot(self) -> Dict[str, int]:
        return {
            f.name: int(getattr(self, f.name))
            for f in fields(self)
            if not f.name.endswith("_checkpoint")
        }

    def reset(self) -> None:
        for f in fields(self):
            if f.name.endswith("_checkpoint"):
                setattr(self, f.name, _now())
            else:
                setattr(self, f.name, Accumulator(0))


ReadGuard = impl_write(
    "ReadGuard",
    owner=IoMetrics,
    time_field="read_time_ns",
    size_field="read_bytes",
    module=__name__,
)
WriteGuard = impl_write(
    "WriteGuard",
    owner=IoMetrics,
    time_field="write_time_ns",
    size_field="write_bytes",
    module=__name__,
)


__all__ = ["IoMetrics", "ReadGuard", "WriteGuard"]
