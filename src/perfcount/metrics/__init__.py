"""Generated execution counters, present only when recording is switched on.

With :data:`perfcount.features.RECORD_EXECUTION_METRICS` off this package
exports nothing and its submodules refuse to import.
"""

from __future__ import annotations

from typing import List

from ..features import RECORD_EXECUTION_METRICS

__all__: List[str] = []

if RECORD_EXECUTION_METRICS:
    from .guard import GuardReading, GuardStateError, ScopedInstrumentationGuard, impl_write
    from .io_metrics import IoMetrics, ReadGuard, WriteGuard
    from .templates import (
        FieldBindingError,
        GeneratedMethod,
        define_record_size_function,
        define_record_time_function,
        define_record_with_elapsed_time_function,
        define_start_function,
    )

    __all__ = [
        "FieldBindingError",
        "GeneratedMethod",
        "define_record_with_elapsed_time_function",
        "define_record_time_function",
        "define_record_size_function",
        "define_start_function",
        "GuardReading",
        "GuardStateError",
        "ScopedInstrumentationGuard",
        "impl_write",
        "IoMetrics",
        "ReadGuard",
        "WriteGuard",
    ]
