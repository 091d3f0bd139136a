"""Summarise counter snapshots."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List

import numpy as np
import pandas as pd

NS_PER_SEC = 1e9


def _rate(numerator: pd.Series, denominator: pd.Series, scale: float = 1.0) -> np.ndarray:
    num = numerator.to_numpy(dtype=np.float64) * scale
    den = denominator.to_numpy(dtype=np.float64)
    out = np.full_like(num, np.nan)
    np.divide(num, den, out=out, where=den > 0)
    return out


def summarise_counters(snapshots: Iterable[Dict[str, int]]) -> pd.DataFrame:
    """Convert counter snapshots to a :class:`~pandas.DataFrame` with derived rates.

    For every ``<kind>`` having ``<kind>_time_ns`` and ``<kind>_bytes`` columns a
    ``<kind>_bytes_per_sec`` column is added, and a ``<kind>_ns_per_op`` column
    when ``<kind>_ops`` is present too. Rates over a zero denominator are NaN.
    """

    df = pd.DataFrame(list(snapshots))
    for column in [c for c in df.columns if c.endswith("_time_ns")]:
        kind = column[: -len("_time_ns")]
        if f"{kind}_bytes" in df.columns:
            df[f"{kind}_bytes_per_sec"] = _rate(df[f"{kind}_bytes"], df[column], scale=NS_PER_SEC)
        if f"{kind}_ops" in df.columns:
            df[f"{kind}_ns_per_op"] = _rate(df[column], df[f"{kind}_ops"])
    return df


def write_summary(output_dir: Path, snapshots: List[Dict[str, int]]) -> pd.DataFrame:
    """Write a CSV counter table and a short textual report."""

    output_dir.mkdir(parents=True, exist_ok=True)
    df = summarise_counters(snapshots)
    df.to_csv(output_dir / "metrics.csv", index=False)
    with (output_dir / "report.txt").open("w", encoding="utf-8") as handle:
        for column in [c for c in df.columns if c.endswith("_bytes_per_sec")]:
            values = df[column].dropna()
            mean_rate = float(values.mean()) if not values.empty else float("nan")
            handle.write(f"Mean {column}: {mean_rate:.1f}\n")
    return df


__all__ = ["summarise_counters", "write_summary"]
