"""Core service interfaces and shared data structures.

This module defines the collaborator protocols the pipeline depends on
(codec and deleter) and the dataclasses that report what a run did.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from core.models import OutputFormat


class ImageHandle(Protocol):
    """A decoded image; every derivation returns a new handle."""

    def with_auto_orientation(self) -> ImageHandle:
        """Return a handle rotated/flipped per embedded orientation metadata."""
        raise NotImplementedError

    def resized(self, width: int) -> ImageHandle:
        """Return a handle scaled to `width`, keeping the aspect ratio."""
        raise NotImplementedError

    def encode_to(self, path: Path, fmt: OutputFormat) -> None:
        """Encode to `fmt` and write the bytes to `path`."""
        raise NotImplementedError


class ImageCodec(Protocol):
    """Decodes source files into `ImageHandle`s."""

    def decode(self, path: Path) -> ImageHandle:
        """Load and decode `path`."""
        raise NotImplementedError


class Deleter(Protocol):
    """Removes output files and directories."""

    def delete_file(self, path: Path) -> None:
        """Remove a single file."""
        raise NotImplementedError

    def delete_tree(self, path: Path) -> None:
        """Remove a directory and everything below it."""
        raise NotImplementedError

    def write_audit_log(
        self, entries: list[tuple[str, str, str]], log_dir: Path
    ) -> str | None:
        """Write (kind, gallery, path) rows under `log_dir`; None if the write failed."""
        raise NotImplementedError


@dataclass
class ArtifactReconcileResult:
    """Outcome of artifact-level orphan reconciliation for one gallery.

    Attributes:
        deleted: Artifact paths removed (or planned, on a dry run).
        orphaned_base_names: Distinct base names that had no source image.
        orphaned_sources: Approximate count of fully orphaned source images,
            derived from the matrix size.
    """

    deleted: list[Path] = field(default_factory=list)
    orphaned_base_names: list[str] = field(default_factory=list)
    orphaned_sources: int = 0

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)


@dataclass
class GalleryReconcileResult:
    """Outcome of gallery-level orphan reconciliation."""

    source_galleries: list[str] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)


@dataclass
class RegenerationResult:
    """Outcome of regenerating the full derivative set for one image.

    Attributes:
        filename: Source file name.
        written: Paths successfully written.
        errors: Tuples of (output path or source path, message).
    """

    filename: str
    written: list[Path] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class GallerySyncResult:
    """Outcome of synchronizing one gallery."""

    gallery: str
    total_images: int = 0
    stale_count: int = 0
    regenerated: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)
    reconcile: ArtifactReconcileResult = field(default_factory=ArtifactReconcileResult)

    @property
    def up_to_date(self) -> bool:
        return self.stale_count == 0


@dataclass
class RunSummary:
    """Outcome of a full pipeline run."""

    galleries: list[GallerySyncResult] = field(default_factory=list)
    removed_galleries: list[Path] = field(default_factory=list)
    audit_log_path: str | None = None

    @property
    def deleted_artifacts(self) -> int:
        return sum(g.reconcile.deleted_count for g in self.galleries)

    @property
    def regenerated(self) -> int:
        return sum(len(g.regenerated) for g in self.galleries)

    @property
    def failed(self) -> int:
        return sum(len(g.failed) for g in self.galleries)
