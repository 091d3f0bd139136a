"""Configuration utilities for :mod:`perfcount`."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

TRUTHY = ("1", "true", "yes", "y", "on")


@dataclass
class FeatureConfig:
    """Switches resolved once, before any gated module is imported."""

    record_execution_metrics: bool = False


@dataclass
class LoggingConfig:
    """Logging verbosity and formatting options."""

    level: str = "INFO"
    rich_tracebacks: bool = True


@dataclass
class ReportConfig:
    """Where benchmark summaries are written."""

    results_dir: Path = Path("results")
    run_id_prefix: str = "bench"


@dataclass
class AppConfig:
    """Top-level configuration object composed of sub-configurations."""

    features: FeatureConfig = field(default_factory=FeatureConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def _coerce_path(value: Any) -> Path:
    if isinstance(value, Path):
        return value
    return Path(str(value))


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return bool(value)


def load_yaml(path: Path) -> Mapping[str, Any]:
    """Load a YAML document and return a mapping."""

    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_app_config(path: Path) -> AppConfig:
    """Load :class:`AppConfig` from ``path``."""

    raw = load_yaml(Path(path))
    features = raw.get("features", {}) or {}
    logging_cfg = raw.get("logging", {}) or {}
    report = raw.get("report", {}) or {}

    return AppConfig(
        features=FeatureConfig(
            record_execution_metrics=_coerce_bool(features.get("record_execution_metrics", False)),
        ),
        logging=LoggingConfig(
            level=str(logging_cfg.get("level", "INFO")),
            rich_tracebacks=_coerce_bool(logging_cfg.get("rich_tracebacks", True)),
        ),
        report=ReportConfig(
            results_dir=_coerce_path(report.get("results_dir", "results")),
            run_id_prefix=str(report.get("run_id_prefix", "bench")),
        ),
    )


__all__ = [
    "FeatureConfig",
    "LoggingConfig",
    "ReportConfig",
    "AppConfig",
    "load_yaml",
    "load_app_config",
]
