"""perfcount
=========

Generated per-operation timing and size counters for I/O components.

The generated recorders and guard types live in :mod:`perfcount.metrics` and
exist only when execution metrics are switched on (see :mod:`perfcount.features`).
"""

from .counters import COUNTER_MAX, Accumulator, CounterOverflowError, Instant, checked_add
from .features import RECORD_EXECUTION_METRICS, FeatureDisabledError

__all__ = [
    "COUNTER_MAX",
    "Accumulator",
    "CounterOverflowError",
    "Instant",
    "checked_add",
    "RECORD_EXECUTION_METRICS",
    "FeatureDisabledError",
]
