"""Orphan reconciliation for derivative artifacts and output galleries.

Deletion errors are deliberately not caught here: a failed removal aborts
the run instead of leaving the output tree in a half-known state.
"""

from __future__ import annotations

import math
from pathlib import Path

from loguru import logger

from core.config import PipelineConfig
from core.naming import parse_artifact_name
from core.services.interfaces import ArtifactReconcileResult, Deleter, GalleryReconcileResult
from core.services.source_service import (
    list_gallery_names,
    list_source_galleries,
    source_base_names,
)


class OrphanReconciler:
    """Deletes output artifacts and galleries that no longer have a source."""

    def __init__(self, config: PipelineConfig, deleter: Deleter) -> None:
        self._config = config
        self._deleter = deleter

    def reconcile_artifacts(
        self, source_gallery_dir: Path, output_gallery_dir: Path
    ) -> ArtifactReconcileResult:
        """Delete artifacts in `output_gallery_dir` whose base name has no source.

        Files that do not follow the artifact naming convention are left alone.
        """
        result = ArtifactReconcileResult()
        output_gallery_dir = Path(output_gallery_dir)
        if not output_gallery_dir.is_dir():
            return result

        live = source_base_names(source_gallery_dir)
        extensions = self._config.extensions
        orphaned: set[str] = set()

        for path in sorted(output_gallery_dir.iterdir()):
            if not path.is_file():
                continue
            parsed = parse_artifact_name(path.name, extensions)
            if parsed is None or parsed.base_name in live:
                continue
            orphaned.add(parsed.base_name)
            if self._config.dry_run:
                logger.info("[dry-run] Would delete orphan artifact {}", path)
            else:
                self._deleter.delete_file(path)
                logger.debug("Deleted orphan artifact {}", path)
            result.deleted.append(path)

        result.orphaned_base_names = sorted(orphaned)
        if result.deleted:
            result.orphaned_sources = math.ceil(result.deleted_count / len(self._config.matrix))
            logger.info(
                "Removed {} orphan artifacts (~{} source images) from {}",
                result.deleted_count,
                result.orphaned_sources,
                output_gallery_dir,
            )
        return result

    def reconcile_galleries(self, source_root: Path, output_root: Path) -> GalleryReconcileResult:
        """Recursively delete output galleries with no matching source gallery."""
        result = GalleryReconcileResult(source_galleries=list_source_galleries(source_root))
        source_names = set(result.source_galleries)
        output_root = Path(output_root)
        if not self._config.dry_run:
            output_root.mkdir(parents=True, exist_ok=True)
        elif not output_root.is_dir():
            return result

        for name in list_gallery_names(output_root):
            if name in source_names:
                result.kept.append(name)
                continue
            target = output_root / name
            if self._config.dry_run:
                logger.info("[dry-run] Would remove orphan gallery {}", target)
            else:
                self._deleter.delete_tree(target)
                logger.info("Removed orphan gallery {}", target)
            result.removed.append(target)
        return result
