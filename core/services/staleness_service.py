"""Timestamp-based staleness detection for derivative sets."""

from __future__ import annotations

from collections.abc import Iterable
import os
from pathlib import Path

from core.models import DerivativeSpec
from core.naming import artifact_path


def needs_regeneration(
    source_path: Path,
    output_dir: Path,
    source_filename: str,
    matrix: Iterable[DerivativeSpec],
) -> bool:
    """Return True if any expected derivative is missing or older than the source.

    A single missing or stale artifact marks the whole set for regeneration.
    A missing `output_dir` reads as "all missing".
    """
    base_name = Path(source_filename).stem
    source_mtime = os.stat(source_path).st_mtime_ns

    for spec in matrix:
        target = artifact_path(output_dir, base_name, spec)
        try:
            target_mtime = os.stat(target).st_mtime_ns
        except FileNotFoundError:
            return True
        if source_mtime > target_mtime:
            return True
    return False
