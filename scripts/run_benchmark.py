"""Command-line interface running an instrumented block-store workload."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
DEFAULT_CONFIG = PROJECT_ROOT / "configs" / "defaults.yaml"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config (default: $PERFCOUNT_CONFIG, else configs/defaults.yaml)",
    )
    parser.add_argument("--blocks", type=int, default=64)
    parser.add_argument("--block-size", type=int, default=4096)
    parser.add_argument("--output", type=Path, default=None, help="override report.results_dir")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    config_path = args.config or Path(os.environ.get("PERFCOUNT_CONFIG", DEFAULT_CONFIG))
    # The switch is resolved on first import of perfcount; it must read the same file as below.
    os.environ["PERFCOUNT_CONFIG"] = str(config_path)

    from perfcount import config as app_config
    from perfcount import features
    from perfcount.reporting import save_results, summarize
    from perfcount.storage import BlockStore
    from perfcount.utils.logging import setup_logging

    config = app_config.load_app_config(config_path)
    setup_logging(level=config.logging.level, rich_tracebacks=config.logging.rich_tracebacks)
    log = logging.getLogger("run_benchmark")

    payload = os.urandom(args.block_size)
    with tempfile.TemporaryDirectory(prefix="perfcount-") as tmp:
        store = BlockStore(Path(tmp))
        snapshots = []
        for i in range(args.blocks):
            key = f"block-{i:05d}"
            store.put(key, payload)
            if store.get(key) != payload:
                raise RuntimeError(f"corrupted block {key}")
            if features.RECORD_EXECUTION_METRICS:
                snapshots.append(store.metrics.snapshot())

    if not features.RECORD_EXECUTION_METRICS:
        log.info("Execution metrics are disabled; ran %d blocks without counters", args.blocks)
        return

    results_root = args.output or config.report.results_dir
    run_id = save_results.new_run_id(config.report.run_id_prefix)
    summary_dir = save_results.summary_dir_for(Path(results_root), run_id)
    df = summarize.write_summary(summary_dir, snapshots)
    save_results.write_run_metadata(
        summary_dir,
        {
            "run_id": run_id,
            "blocks": args.blocks,
            "block_size": args.block_size,
            "final": snapshots[-1] if snapshots else {},
        },
    )
    final = df.iloc[-1] if not df.empty else None
    if final is not None:
        log.info(
            "write %.1f MB/s, read %.1f MB/s",
            final.get("write_bytes_per_sec", float("nan")) / 1e6,
            final.get("read_bytes_per_sec", float("nan")) / 1e6,
        )
    log.info("Summary written to %s", summary_dir)


if __name__ == "__main__":
    main()
