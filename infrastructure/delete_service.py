"""Filesystem deletion and audit logging for orphaned outputs.

Removes derivative files and output galleries either permanently or by moving
them to the recycle bin, and writes an audit CSV of what was removed.
Deletion failures are not swallowed: the caller decides whether a run
survives them. A failed audit write is only logged.
"""

from __future__ import annotations

import csv
from datetime import datetime
import os
from pathlib import Path
import shutil

from loguru import logger
from send2trash import send2trash

AUDIT_HEADERS = ["Kind", "Gallery", "Path"]


class DeleteService:
    """Deletes output files/directories in "unlink" or "trash" mode."""

    def __init__(self, mode: str = "unlink") -> None:
        if mode not in ("unlink", "trash"):
            raise ValueError(f"Unknown delete mode: {mode}")
        self._mode = mode

    def delete_file(self, path: Path) -> None:
        """Remove a single file."""
        normalized_path = os.path.normpath(path)
        if self._mode == "trash":
            send2trash(normalized_path)
        else:
            os.remove(normalized_path)

    def delete_tree(self, path: Path) -> None:
        """Remove a directory recursively."""
        normalized_path = os.path.normpath(path)
        if self._mode == "trash":
            send2trash(normalized_path)
        else:
            shutil.rmtree(normalized_path)

    def write_audit_log(self, entries: list[tuple[str, str, str]], log_dir: Path) -> str | None:
        """Write a `delete_{timestamp}.csv` listing removed paths.

        A failed write is logged and reported as None; the deletions it
        describes have already happened.

        Args:
            entries: Tuples of (kind, gallery, path) where kind is "artifact"
                or "gallery".
            log_dir: Directory for the CSV; created if missing.
        """
        try:
            base_dir = Path(os.path.expandvars(str(log_dir)))
            base_dir.mkdir(parents=True, exist_ok=True)
            ts = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_path = base_dir / f"delete_{ts}.csv"
            with log_path.open("w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(AUDIT_HEADERS)
                for kind, gallery, path in entries:
                    writer.writerow([kind, gallery, path])
        except (OSError, ValueError) as ex:
            logger.error("Write delete log failed: {}", ex)
            return None
        logger.info(
            "Delete log written: {} ({} entries, mode={})", log_path, len(entries), self._mode
        )
        return str(log_path)
