"""Method generators binding timing and size recorders to named fields.

Each ``define_*`` factory returns a :class:`GeneratedMethod` to be assigned in
a class body::

    @dataclass
    class Stats:
        checkpoint: Instant
        busy_ns: Accumulator = 0

        start = define_start_function("checkpoint")
        record_busy = define_record_time_function("busy_ns", "checkpoint")

The owner's fields are checked while the class statement runs, so a typo in
a field name fails at import rather than at the first measurement.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, Optional, Tuple

from ..features import require_execution_metrics

require_execution_metrics(__name__)

from .. import clock  # noqa: E402
from ..counters import Accumulator, Instant, checked_add  # noqa: E402

_KIND_NAMES = {Instant: "Instant", Accumulator: "Accumulator"}


class FieldBindingError(TypeError):
    """Raised when a generated method is bound to a missing or mistyped field."""


def _annotation_name(annotation: Any) -> str:
    if isinstance(annotation, str):
        return annotation.strip().strip("'\"").rsplit(".", 1)[-1]
    return getattr(annotation, "__name__", repr(annotation))


def _class_annotations(klass: type) -> Dict[str, Any]:
    try:
        return dict(inspect.get_annotations(klass))
    except NameError:
        return dict(klass.__dict__.get("__annotations__", {}))


def declared_fields(owner: type) -> Dict[str, str]:
    """Map every annotated attribute of ``owner`` (and its bases) to its type name."""

    fields: Dict[str, str] = {}
    for klass in reversed(owner.__mro__):
        for name, annotation in _class_annotations(klass).items():
            fields[name] = _annotation_name(annotation)
    return fields


class GeneratedMethod:
    """Descriptor wrapping a generated function and the fields it touches."""

    def __init__(self, func: Callable[..., Any], bindings: Tuple[Tuple[str, Any], ...]) -> None:
        self.func = func
        self.bindings = bindings
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        fields = declared_fields(owner)
        for field_name, kind in self.bindings:
            expected = _KIND_NAMES[kind]
            if field_name not in fields:
                raise FieldBindingError(
                    f"{owner.__qualname__}.{name}: no field '{field_name}' declared as {expected}"
                )
            if fields[field_name] != expected:
                raise FieldBindingError(
                    f"{owner.__qualname__}.{name}: field '{field_name}' is annotated "
                    f"{fields[field_name]}, expected {expected}"
                )
        self.name = name
        self.func.__name__ = name
        self.func.__qualname__ = f"{owner.__qualname__}.{name}"

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Callable[..., Any]:
        if instance is None:
            return self.func
        return self.func.__get__(instance, owner)


def _advance(obj: Any, field: str, time_counter: str) -> Instant:
    now = clock.now_ns()
    duration = clock.elapsed_ns(getattr(obj, time_counter), now)
    total = checked_add(getattr(obj, field), duration, field=field)
    # Both fields move together once the addition is known to fit.
    setattr(obj, time_counter, now)
    setattr(obj, field, total)
    return now


def define_record_with_elapsed_time_function(field: str, time_counter: str) -> GeneratedMethod:
    """Generate ``(self) -> Instant`` adding the time since ``time_counter`` to ``field``.

    The reference instant is reset to the returned value, so callers can chain
    further measurements off it without reading the clock again.
    """

    def record(self) -> Instant:
        return _advance(self, field, time_counter)

    return GeneratedMethod(record, ((field, Accumulator), (time_counter, Instant)))


def define_record_time_function(field: str, time_counter: str) -> GeneratedMethod:
    """Like :func:`define_record_with_elapsed_time_function` but returns ``None``."""

    def record(self) -> None:
        _advance(self, field, time_counter)

    return GeneratedMethod(record, ((field, Accumulator), (time_counter, Instant)))


def define_record_size_function(field: str) -> GeneratedMethod:
    """Generate ``(self, size) -> None`` adding ``size`` to ``field``."""

    def record(self, size: int) -> None:
        setattr(self, field, checked_add(getattr(self, field), size, field=field))

    return GeneratedMethod(record, ((field, Accumulator),))


def define_start_function(start_field: str) -> GeneratedMethod:
    """Generate ``(self) -> None`` setting ``start_field`` to the current instant."""

    def start(self) -> None:
        setattr(self, start_field, clock.now_ns())

    return GeneratedMethod(start, ((start_field, Instant),))


__all__ = [
    "FieldBindingError",
    "GeneratedMethod",
    "declared_fields",
    "define_record_with_elapsed_time_function",
    "define_record_time_function",
    "define_record_size_function",
    "define_start_function",
]
