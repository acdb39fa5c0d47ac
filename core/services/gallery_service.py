"""Per-gallery synchronization and bounded-concurrency regeneration."""

from __future__ import annotations

import asyncio
from pathlib import Path

from loguru import logger

from core.config import PipelineConfig
from core.models import DerivativeSpec, SourceImage
from core.naming import artifact_path
from core.services.interfaces import (
    GallerySyncResult,
    ImageCodec,
    ImageHandle,
    RegenerationResult,
)
from core.services.orphan_service import OrphanReconciler
from core.services.source_service import list_source_images
from core.services.staleness_service import needs_regeneration


class GallerySynchronizer:
    """Brings one output gallery in line with its source gallery.

    Order per gallery: ensure output dir, drop orphan artifacts, scan for
    stale images, regenerate them at most `config.concurrency` at a time.
    """

    def __init__(
        self, config: PipelineConfig, codec: ImageCodec, reconciler: OrphanReconciler
    ) -> None:
        self._config = config
        self._codec = codec
        self._reconciler = reconciler

    async def sync(self, source_gallery_dir: Path, output_gallery_dir: Path) -> GallerySyncResult:
        """Synchronize `output_gallery_dir` with `source_gallery_dir`."""
        source_gallery_dir = Path(source_gallery_dir)
        output_gallery_dir = Path(output_gallery_dir)
        result = GallerySyncResult(gallery=source_gallery_dir.name)

        if not self._config.dry_run:
            output_gallery_dir.mkdir(parents=True, exist_ok=True)

        result.reconcile = self._reconciler.reconcile_artifacts(
            source_gallery_dir, output_gallery_dir
        )

        images = list_source_images(source_gallery_dir)
        result.total_images = len(images)
        stale = [
            img
            for img in images
            if needs_regeneration(img.path, output_gallery_dir, img.filename, self._config.matrix)
        ]
        result.stale_count = len(stale)

        if not stale:
            logger.info("All images up to date in {}", result.gallery)
            return result

        logger.info("Processing {} of {} images in {}", len(stale), len(images), result.gallery)
        if self._config.dry_run:
            for img in stale:
                logger.info("[dry-run] Would regenerate {}", img.path)
            return result

        if self._config.scheduling == "pool":
            outcomes = await self._run_pooled(stale, output_gallery_dir)
        else:
            outcomes = await self._run_batched(stale, output_gallery_dir)

        for outcome in outcomes:
            if outcome.ok:
                result.regenerated.append(outcome.filename)
            else:
                result.failed.append((outcome.filename, "; ".join(m for _, m in outcome.errors)))
        return result

    async def _run_batched(
        self, stale: list[SourceImage], output_dir: Path
    ) -> list[RegenerationResult]:
        """Fixed-size windows; a window starts only when the previous one is done."""
        limit = self._config.concurrency
        outcomes: list[RegenerationResult] = []
        for start in range(0, len(stale), limit):
            batch = stale[start : start + limit]
            logger.debug("Batch {}: {} images", start // limit + 1, len(batch))
            outcomes.extend(
                await asyncio.gather(
                    *(self.regenerate(img.path, output_dir, img.filename) for img in batch)
                )
            )
        return outcomes

    async def _run_pooled(
        self, stale: list[SourceImage], output_dir: Path
    ) -> list[RegenerationResult]:
        """Semaphore-gated dispatch; a freed slot is reused immediately."""
        gate = asyncio.Semaphore(self._config.concurrency)

        async def _guarded(img: SourceImage) -> RegenerationResult:
            async with gate:
                return await self.regenerate(img.path, output_dir, img.filename)

        return list(await asyncio.gather(*(_guarded(img) for img in stale)))

    async def regenerate(
        self, source_path: Path, output_dir: Path, filename: str
    ) -> RegenerationResult:
        """Write every derivative of one source image.

        The source is decoded and oriented once; each (width, format) is then
        resized and encoded concurrently. Failures are logged and recorded,
        never raised, so siblings and other images carry on.
        """
        result = RegenerationResult(filename=filename)
        base_name = Path(filename).stem

        try:
            handle = await asyncio.to_thread(self._load, Path(source_path))
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Error processing {}: {}", filename, ex)
            result.errors.append((str(source_path), str(ex)))
            return result

        specs = self._config.matrix
        targets = [artifact_path(output_dir, base_name, spec) for spec in specs]
        outcomes = await asyncio.gather(
            *(
                asyncio.to_thread(self._render, handle, spec, target)
                for spec, target in zip(specs, targets)
            ),
            return_exceptions=True,
        )

        for target, outcome in zip(targets, outcomes):
            if isinstance(outcome, Exception):
                logger.error("Error processing {} -> {}: {}", filename, target.name, outcome)
                result.errors.append((str(target), str(outcome)))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                logger.info("Wrote {}", target)
                result.written.append(target)
        return result

    def _load(self, source_path: Path) -> ImageHandle:
        return self._codec.decode(source_path).with_auto_orientation()

    @staticmethod
    def _render(handle: ImageHandle, spec: DerivativeSpec, target: Path) -> None:
        handle.resized(spec.width).encode_to(target, spec.format)
