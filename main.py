from __future__ import annotations

import asyncio
from pathlib import Path

from loguru import logger

from core.errors import PipelineError
from core.services.pipeline_service import Pipeline
from infrastructure.delete_service import DeleteService
from infrastructure.image_service import ImageService
from infrastructure.logging import init_logging
from infrastructure.settings import JsonSettings, load_pipeline_config


BASE_DIR = Path(__file__).parent


def main() -> int:
    init_logging()
    try:
        settings = JsonSettings.load_or_empty(BASE_DIR / "settings.json")
        init_logging(
            level=str(settings.get("logging.level", "INFO")),
            log_dir=settings.get("logging.log_dir"),
        )
        config = load_pipeline_config(settings)
        logger.info(
            "Syncing {} -> {} ({} widths x {} formats, concurrency {})",
            config.input_root,
            config.output_root,
            len(config.widths),
            len(config.formats),
            config.concurrency,
        )
        pipeline = Pipeline(config, ImageService(), DeleteService(config.delete_mode))
        summary = asyncio.run(pipeline.run())
    except (PipelineError, OSError) as ex:
        logger.exception("Pipeline aborted: {}", ex)
        return 1

    logger.info("Done processing images ({} failed)", summary.failed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
