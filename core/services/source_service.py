"""Enumeration of source galleries and the raw photos inside them."""

from __future__ import annotations

from collections import defaultdict
import os
from pathlib import Path

from loguru import logger

from core.errors import BaseNameCollisionError, SourceRootNotFoundError
from core.models import SourceImage, is_source_image


def list_gallery_names(root: Path) -> list[str]:
    """Return sorted names of the immediate subdirectories of `root`."""
    with os.scandir(root) as it:
        return sorted(entry.name for entry in it if entry.is_dir())


def list_source_galleries(source_root: Path) -> list[str]:
    """Like `list_gallery_names`, but a missing root is fatal."""
    if not Path(source_root).is_dir():
        raise SourceRootNotFoundError(source_root)
    return list_gallery_names(source_root)


def list_source_images(gallery_dir: Path) -> list[SourceImage]:
    """Return source images of `gallery_dir` sorted by file name.

    Raises:
        BaseNameCollisionError: two files share a base name (e.g. "a.jpg"
            and "a.png") and would map onto the same derivatives.
    """
    gallery_dir = Path(gallery_dir)
    by_base: dict[str, list[Path]] = defaultdict(list)
    for path in sorted(gallery_dir.iterdir()):
        if is_source_image(path):
            by_base[path.stem].append(path)

    images: list[SourceImage] = []
    for base, paths in by_base.items():
        if len(paths) > 1:
            raise BaseNameCollisionError(gallery_dir, base, [p.name for p in paths])
        path = paths[0]
        images.append(SourceImage(path=path, base_name=base, mtime_ns=path.stat().st_mtime_ns))
    images.sort(key=lambda img: img.filename)
    logger.debug("Found {} source images in {}", len(images), gallery_dir)
    return images


def source_base_names(gallery_dir: Path) -> set[str]:
    """Base names of every source image in `gallery_dir`."""
    return {img.base_name for img in list_source_images(gallery_dir)}
