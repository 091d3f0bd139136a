"""Layout and metadata of benchmark result directories.

Each benchmark run writes to ``<results_root>/<run_id>/summary``, next to a
``metadata.yaml`` describing the workload that produced the counters.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

import yaml


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_run_id(prefix: str) -> str:
    return f"{prefix}_{_utc_now().strftime('%Y%m%dT%H%M%SZ')}"


def summary_dir_for(results_root: Path, run_id: str) -> Path:
    """Create and return the summary directory of ``run_id``."""

    path = Path(results_root) / run_id / "summary"
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_run_metadata(summary_dir: Path, workload: Dict[str, object]) -> Path:
    """Dump ``workload`` plus a UTC ``written_at`` stamp to ``metadata.yaml``."""

    target = summary_dir / "metadata.yaml"
    payload = dict(workload)
    payload.setdefault("written_at", _utc_now().isoformat())
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle, sort_keys=True)
    return target


__all__ = ["new_run_id", "summary_dir_for", "write_run_metadata"]
