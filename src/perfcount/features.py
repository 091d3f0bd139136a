"""Import-time switch controlling whether execution metrics exist at all.

The switch is read once, when this module is first imported:

- ``PERFCOUNT_RECORD_EXECUTION_METRICS``: ``1/true/yes/y/on`` enables recording,
  any other value disables it.
- ``PERFCOUNT_CONFIG``: path to a YAML config whose
  ``features.record_execution_metrics`` is used when the variable above is unset.

With the switch off, every gated module raises :class:`FeatureDisabledError`
on import, so its counters, generated methods and guard types are never defined.
"""

from __future__ import annotations

import os
from pathlib import Path

from .config import TRUTHY, load_app_config

ENV_FLAG = "PERFCOUNT_RECORD_EXECUTION_METRICS"
ENV_CONFIG = "PERFCOUNT_CONFIG"


class FeatureDisabledError(ImportError):
    """Raised when a gated module is imported with recording switched off."""


def _resolve() -> bool:
    flag = os.getenv(ENV_FLAG)
    if flag is not None:
        return flag.strip().lower() in TRUTHY
    config_path = os.getenv(ENV_CONFIG)
    if config_path:
        return load_app_config(Path(config_path)).features.record_execution_metrics
    return False


RECORD_EXECUTION_METRICS: bool = _resolve()


def require_execution_metrics(module_name: str) -> None:
    """Abort the import of ``module_name`` unless recording is enabled."""

    if not RECORD_EXECUTION_METRICS:
        raise FeatureDisabledError(
            f"{module_name} is only available with {ENV_FLAG}=1",
            name=module_name,
        )


__all__ = [
    "ENV_FLAG",
    "ENV_CONFIG",
    "RECORD_EXECUTION_METRICS",
    "FeatureDisabledError",
    "require_execution_metrics",
]
