"""Core domain models for source images and the derivative matrix."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

SOURCE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".heic", ".dng"})


@dataclass(frozen=True)
class OutputFormat:
    """Target encoding for a derivative.

    `extension` is what lands in the file name, `encoding` is the codec
    identifier handed to the image library (e.g. "WEBP").
    """

    extension: str
    encoding: str
    quality: int = 90


@dataclass(frozen=True)
class DerivativeSpec:
    """One (width, format) cell of the derivative matrix."""

    width: int
    format: OutputFormat

    @property
    def extension(self) -> str:
        return self.format.extension


@dataclass(frozen=True)
class SourceImage:
    """A raw photo inside a gallery directory."""

    path: Path
    base_name: str
    mtime_ns: int

    @property
    def filename(self) -> str:
        return self.path.name


def build_matrix(
    widths: tuple[int, ...], formats: tuple[OutputFormat, ...]
) -> tuple[DerivativeSpec, ...]:
    """Return the widths x formats cross-product, widths outer."""
    return tuple(DerivativeSpec(width=w, format=f) for w in widths for f in formats)


def is_source_image(path: Path) -> bool:
    """True for regular files with a recognized raw-photo extension."""
    return path.suffix.lower() in SOURCE_EXTENSIONS and path.is_file()
