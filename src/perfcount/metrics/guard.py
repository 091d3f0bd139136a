"""Scoped guards that time one operation and record its size on scope exit."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..features import require_execution_metrics

require_execution_metrics(__name__)

from .. import clock  # noqa: E402
from ..counters import Accumulator, CounterOverflowError, Instant, checked_add  # noqa: E402
from .templates import (  # noqa: E402
    FieldBindingError,
    declared_fields,
    define_record_size_function,
    define_record_with_elapsed_time_function,
    define_start_function,
)

logger = logging.getLogger(__name__)


class GuardStateError(RuntimeError):
    """Raised when a guard is finalized twice or read before finalization."""


@dataclass(frozen=True)
class GuardReading:
    """Totals recorded by one finalized guard."""

    elapsed_ns: int
    size: int


class ScopedInstrumentationGuard:
    """Base class of the guard types assembled by :func:`impl_write`.

    A guard marks its start instant when constructed and finalizes exactly once,
    either on ``__exit__`` or, for a guard that never entered a ``with`` block,
    when it is garbage collected. Finalization runs the generated time recorder,
    then the size recorder, then forwards both totals to the bound aggregator.
    """

    size: int
    start_time: Instant
    elapsed_time: Accumulator
    total_size: Accumulator

    _start_record_fn: Optional[str] = None
    _record_time_fn: Optional[str] = None
    _record_size_fn: Optional[str] = None
    _owner: Optional[type] = None
    _time_field: Optional[str] = None
    _size_field: Optional[str] = None

    def __init__(self, size: int, target: Any = None) -> None:
        self._finalized = True
        cls = type(self)
        if cls._start_record_fn is None:
            raise TypeError(f"{cls.__name__} is not assembled; build guard types with impl_write()")
        checked_add(0, size, field=f"{cls.__name__}.size")
        if cls._owner is None:
            if target is not None:
                raise TypeError(f"{cls.__name__} is not bound to an aggregator")
        elif not isinstance(target, cls._owner):
            raise TypeError(
                f"{cls.__name__} records into {cls._owner.__name__}, got {type(target).__name__}"
            )
        self.size = int(size)
        self.target = target
        self.start_time = clock.now_ns()
        self.elapsed_time = Accumulator(0)
        self.total_size = Accumulator(0)
        self._finalized = False
        getattr(self, cls._start_record_fn)()

    def __enter__(self) -> "ScopedInstrumentationGuard":
        if self._finalized:
            raise GuardStateError(f"{type(self).__name__} already finalized")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finalize()

    def __del__(self) -> None:
        if getattr(self, "_finalized", True):
            return
        try:
            self.finalize()
        except CounterOverflowError:
            # Exceptions cannot leave __del__, so overflow ends the process here.
            logger.critical("%s overflowed while finalizing on collection", type(self).__name__, exc_info=True)
            os.abort()

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} cannot be copied")

    def __deepcopy__(self, memo: Dict[int, Any]):
        raise TypeError(f"{type(self).__name__} cannot be copied")

    @property
    def finalized(self) -> bool:
        return self._finalized

    def finalize(self) -> GuardReading:
        """Record the elapsed time and size of this scope. Allowed once."""

        if self._finalized:
            raise GuardStateError(f"{type(self).__name__} already finalized")
        self._finalized = True
        cls = type(self)
        getattr(self, cls._record_time_fn)()
        getattr(self, cls._record_size_fn)(self.size)
        if self.target is not None:
            self._forward(self.target)
        logger.debug(
            "%s finalized: %d ns, %d bytes", cls.__name__, self.elapsed_time, self.total_size
        )
        return self.reading()

    def _forward(self, target: Any) -> None:
        cls = type(self)
        updates = []
        if cls._time_field is not None:
            current = getattr(target, cls._time_field)
            updates.append((cls._time_field, checked_add(current, self.elapsed_time, field=cls._time_field)))
        if cls._size_field is not None:
            current = getattr(target, cls._size_field)
            updates.append((cls._size_field, checked_add(current, self.total_size, field=cls._size_field)))
        for field_name, value in updates:
            setattr(target, field_name, value)

    def reading(self) -> GuardReading:
        if not self._finalized:
            raise GuardStateError(f"{type(self).__name__} has not been finalized")
        return GuardReading(elapsed_ns=int(self.elapsed_time), size=int(self.total_size))


_RESERVED = frozenset(dir(ScopedInstrumentationGuard)) | {"size", "target", "start_time", "elapsed_time", "total_size"}


def _check_owner_field(owner: type, fields: Dict[str, str], field_name: str) -> None:
    if field_name not in fields:
        raise FieldBindingError(f"{owner.__qualname__} has no field '{field_name}' declared as Accumulator")
    if fields[field_name] != "Accumulator":
        raise FieldBindingError(
            f"{owner.__qualname__}.{field_name} is annotated {fields[field_name]}, expected Accumulator"
        )


def impl_write(
    name: str,
    *,
    start_record_fn: str = "start_record",
    record_time_fn: str = "record_time",
    record_size_fn: str = "record_size",
    owner: Optional[type] = None,
    time_field: Optional[str] = None,
    size_field: Optional[str] = None,
    module: Optional[str] = None,
) -> type:
    """Assemble a guard type named ``name``.

    Parameters
    ----------
    name:
        Class name of the new guard type.
    start_record_fn, record_time_fn, record_size_fn:
        Names under which the generated start marker, elapsed-time recorder and
        size recorder are installed on the guard, bound to its own
        ``start_time``, ``elapsed_time`` and ``total_size`` fields.
    owner:
        Aggregator class whose instances receive the finalized totals. Guards of
        a bound type must be constructed with an ``owner`` instance as target.
    time_field, size_field:
        ``Accumulator`` fields on ``owner`` receiving the elapsed nanoseconds and
        the size. At least one is required when ``owner`` is given.
    module:
        ``__module__`` of the new type, for readable reprs and pickling errors.
    """

    method_names = (start_record_fn, record_time_fn, record_size_fn)
    if len(set(method_names)) != len(method_names):
        raise ValueError(f"{name}: recorder names must be distinct, got {method_names}")
    clashes = sorted(set(method_names) & _RESERVED)
    if clashes:
        raise ValueError(f"{name}: recorder names {clashes} clash with guard attributes")

    if owner is None:
        if time_field is not None or size_field is not None:
            raise ValueError(f"{name}: time_field/size_field need an owner class")
    else:
        if time_field is None and size_field is None:
            raise ValueError(f"{name}: bind at least one of time_field/size_field on {owner.__name__}")
        fields = declared_fields(owner)
        for field_name in (time_field, size_field):
            if field_name is not None:
                _check_owner_field(owner, fields, field_name)

    namespace = {
        "__module__": module or __name__,
        "__qualname__": name,
        "_start_record_fn": start_record_fn,
        "_record_time_fn": record_time_fn,
        "_record_size_fn": record_size_fn,
        "_owner": owner,
        "_time_field": time_field,
        "_size_field": size_field,
        start_record_fn: define_start_function("start_time"),
        record_time_fn: define_record_with_elapsed_time_function("elapsed_time", "start_time"),
        record_size_fn: define_record_size_function("total_size"),
    }
    guard_type = type(name, (ScopedInstrumentationGuard,), namespace)
    logger.debug(
        "Assembled %s (owner=%s, time_field=%s, size_field=%s)",
        name,
        getattr(owner, "__name__", None),
        time_field,
        size_field,
    )
    return guard_type


__all__ = [
    "GuardStateError",
    "GuardReading",
    "ScopedInstrumentationGuard",
    "impl_write",
]
