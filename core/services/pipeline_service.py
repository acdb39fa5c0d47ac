"""Top-level orchestration of a pipeline run."""

from __future__ import annotations

from loguru import logger

from core.config import PipelineConfig
from core.services.gallery_service import GallerySynchronizer
from core.services.interfaces import Deleter, ImageCodec, RunSummary
from core.services.orphan_service import OrphanReconciler


class Pipeline:
    """Reconciles output galleries, then synchronizes each source gallery.

    Args:
        config: Run configuration.
        codec: Image codec used for regeneration.
        deleter: Removes orphaned files/directories and writes the audit log.
    """

    def __init__(self, config: PipelineConfig, codec: ImageCodec, deleter: Deleter) -> None:
        self._config = config
        self._deleter = deleter
        self._reconciler = OrphanReconciler(config, deleter)
        self._synchronizer = GallerySynchronizer(config, codec, self._reconciler)

    async def run(self) -> RunSummary:
        """Run one full synchronization pass over every gallery.

        Deletions made before an abort are still written to the audit log.
        """
        cfg = self._config
        summary = RunSummary()

        galleries = self._reconciler.reconcile_galleries(cfg.input_root, cfg.output_root)
        summary.removed_galleries = galleries.removed

        try:
            for name in galleries.source_galleries:
                logger.info("Processing gallery: {}", name)
                result = await self._synchronizer.sync(
                    cfg.input_root / name, cfg.output_root / name
                )
                summary.galleries.append(result)
        finally:
            self._write_audit_log(summary)

        logger.info(
            "Done: {} galleries, {} images regenerated, {} failed, "
            "{} artifacts and {} galleries removed",
            len(summary.galleries),
            summary.regenerated,
            summary.failed,
            summary.deleted_artifacts,
            len(summary.removed_galleries),
        )
        return summary

    def _write_audit_log(self, summary: RunSummary) -> None:
        cfg = self._config
        if cfg.audit_log_dir is None or cfg.dry_run:
            return
        entries = [("gallery", p.name, str(p)) for p in summary.removed_galleries]
        for g in summary.galleries:
            entries.extend(("artifact", g.gallery, str(p)) for p in g.reconcile.deleted)
        if entries:
            summary.audit_log_path = self._deleter.write_audit_log(entries, cfg.audit_log_dir)
