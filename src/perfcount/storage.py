"""Directory-backed block store whose I/O path is optionally instrumented."""

from __future__ import annotations

import logging
import re
import shutil
import time
from pathlib import Path
from typing import Iterator

from .features import RECORD_EXECUTION_METRICS

if RECORD_EXECUTION_METRICS:
    from .metrics.io_metrics import IoMetrics

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def write_block_file(target: Path, blob: bytes) -> None:
    """Write ``blob`` beside ``target`` and move it into place.

    Readers never see a partial block; a failed write leaves no temporary file.
    """

    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(f"{target.name}.tmp-{time.monotonic_ns()}")
    try:
        tmp.write_bytes(blob)
        shutil.move(str(tmp), str(target))
    finally:
        tmp.unlink(missing_ok=True)


class BlockStore:
    """Stores opaque byte blocks as ``<root>/<key>.blk``.

    With execution metrics enabled each store owns an :class:`IoMetrics` and
    every ``put``/``get`` runs inside a guard. Otherwise the plain methods are
    installed directly and the store has no ``metrics`` attribute.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        if RECORD_EXECUTION_METRICS:
            self.metrics = IoMetrics()

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"invalid block key: {key!r}")
        return self.root / f"{key}.blk"

    def _put(self, key: str, data: bytes) -> None:
        write_block_file(self._path(key), bytes(data))

    def _get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.exists():
            raise KeyError(key)
        return path.read_bytes()

    if RECORD_EXECUTION_METRICS:

        def put(self, key: str, data: bytes) -> None:
            with self.metrics.measure_write(len(data)):
                self._put(key, data)

        def get(self, key: str) -> bytes:
            path = self._path(key)
            size = path.stat().st_size if path.exists() else 0
            with self.metrics.measure_read(size):
                return self._get(key)

    else:
        put = _put
        get = _get

    def keys(self) -> Iterator[str]:
        return (path.stem for path in sorted(self.root.glob("*.blk")))

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
            logger.debug("Deleted block %s", key)


__all__ = ["BlockStore", "write_block_file"]
