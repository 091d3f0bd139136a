from __future__ import annotations

import importlib
import os
import sys
from typing import Iterator, Optional

import pytest

# The switch is read once on first import, before any test module imports perfcount.
os.environ["PERFCOUNT_RECORD_EXECUTION_METRICS"] = "1"
os.environ.pop("PERFCOUNT_CONFIG", None)


class FakeClock:
    """Deterministic stand-in for :func:`perfcount.clock.now_ns`."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def advance(self, ns: int) -> None:
        self.now += ns

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def fake_clock(monkeypatch) -> FakeClock:
    from perfcount import clock

    fake = FakeClock()
    monkeypatch.setattr(clock, "now_ns", fake)
    return fake


def _purge() -> dict:
    removed = {name: mod for name, mod in sys.modules.items() if name == "perfcount" or name.startswith("perfcount.")}
    for name in removed:
        del sys.modules[name]
    return removed


@pytest.fixture
def reimport_perfcount(monkeypatch) -> Iterator:
    """Return a loader importing a fresh copy of perfcount under a given switch value (None unsets it)."""

    saved = _purge()

    def _load(enabled: Optional[bool], module: str = "perfcount"):
        _purge()
        if enabled is None:
            monkeypatch.delenv("PERFCOUNT_RECORD_EXECUTION_METRICS", raising=False)
        else:
            monkeypatch.setenv("PERFCOUNT_RECORD_EXECUTION_METRICS", "1" if enabled else "0")
        return importlib.import_module(module)

    yield _load
    _purge()
    sys.modules.update(saved)
