"""Image decoding, orientation, resizing and encoding.

Pillow handles JPEG/PNG and, once pillow-heif registers its opener, HEIC.
DNG files are demosaiced through rawpy. Handles are immutable: every
transformation returns a new handle over a new Pillow image, so one decoded
source feeds any number of derivatives.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger
from PIL import Image, ImageOps
from pillow_heif import register_heif_opener
import rawpy

from core.models import OutputFormat

register_heif_opener()

RAW_EXTENSIONS = frozenset({".dng"})

_RESAMPLE = Image.Resampling.LANCZOS

# Encoders that cannot store an alpha channel or palette data.
_RGB_ONLY_ENCODINGS = frozenset({"JPEG"})


class PillowImageHandle:
    """Immutable wrapper around a fully loaded Pillow image."""

    def __init__(self, image: Image.Image, source: str = "") -> None:
        self._image = image
        self._source = source

    @property
    def size(self) -> tuple[int, int]:
        return self._image.size

    def with_auto_orientation(self) -> PillowImageHandle:
        """Apply EXIF orientation; images without the tag come back unchanged."""
        return PillowImageHandle(ImageOps.exif_transpose(self._image), self._source)

    def resized(self, width: int) -> PillowImageHandle:
        """Scale to exactly `width` pixels wide, preserving aspect ratio."""
        w, h = self._image.size
        if w <= 0 or h <= 0:
            raise ValueError(f"Cannot resize empty image {self._source}")
        height = max(1, round(h * (int(width) / w)))
        return PillowImageHandle(self._image.resize((int(width), height), _RESAMPLE), self._source)

    def encode_to(self, path: Path, fmt: OutputFormat) -> None:
        """Encode with `fmt.encoding` at `fmt.quality` and write to `path`."""
        img = self._image
        if fmt.encoding.upper() in _RGB_ONLY_ENCODINGS and img.mode != "RGB":
            img = img.convert("RGB")
        elif img.mode not in ("RGB", "RGBA", "L", "LA"):
            img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
        save_kwargs: dict[str, Any] = {"quality": int(fmt.quality)}
        if fmt.encoding.upper() == "JPEG":
            save_kwargs["optimize"] = True
        img.save(Path(path), format=fmt.encoding, **save_kwargs)


class ImageService:
    """Codec adapter producing `PillowImageHandle`s from source files."""

    def decode(self, path: Path) -> PillowImageHandle:
        """Decode `path` fully into memory.

        Raises whatever the underlying decoder raises (OSError, ValueError,
        rawpy.LibRawError); the caller treats that as a per-image failure.
        """
        path = Path(path)
        if path.suffix.lower() in RAW_EXTENSIONS:
            return PillowImageHandle(self._load_raw(path), str(path))
        with Image.open(path) as im:
            im.load()
            image = im.copy()
        logger.debug("Decoded {} ({}x{}, {})", path.name, image.width, image.height, image.mode)
        return PillowImageHandle(image, str(path))

    def _load_raw(self, path: Path) -> Image.Image:
        """Demosaic a RAW file; rawpy applies the sensor orientation itself."""
        with rawpy.imread(str(path)) as raw:
            rgb = raw.postprocess(use_camera_wb=True, output_bps=8)
        image = Image.fromarray(rgb)
        logger.debug("Decoded RAW {} ({}x{})", path.name, image.width, image.height)
        return image
