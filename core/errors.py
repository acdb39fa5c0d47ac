"""Exceptions raised by the pipeline.

Anything derived from `PipelineError` is fatal for the run; per-image codec
failures never surface as exceptions past the regeneration task.
"""

from __future__ import annotations

from pathlib import Path


class PipelineError(Exception):
    """Base class for fatal pipeline errors."""


class ConfigError(PipelineError, ValueError):
    """Invalid pipeline configuration."""


class SourceRootNotFoundError(PipelineError, FileNotFoundError):
    """The configured source root does not exist or is not a directory."""

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"Source root not found: {path}")
        self.path = Path(path)


class BaseNameCollisionError(PipelineError):
    """Two source images in one gallery share a base name.

    Both would write the same derivative paths, so the run is aborted rather
    than letting one of them silently win.
    """

    def __init__(self, gallery_dir: str | Path, base_name: str, filenames: list[str]) -> None:
        joined = ", ".join(sorted(filenames))
        super().__init__(f"Base name '{base_name}' is shared by {joined} in {gallery_dir}")
        self.gallery_dir = Path(gallery_dir)
        self.base_name = base_name
        self.filenames = sorted(filenames)
