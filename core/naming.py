"""Artifact naming convention: `{base}-{width}.{ext}`.

Every component that builds or parses a derivative file name goes through
this module.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
import re

from core.models import DerivativeSpec

_ARTIFACT_RE = re.compile(r"^(?P<base>.+)-(?P<width>\d+)\.(?P<ext>[^.]+)$")


@dataclass(frozen=True)
class ArtifactName:
    base_name: str
    width: int
    extension: str


def artifact_name(base_name: str, width: int, extension: str) -> str:
    """Return the conventional file name for a derivative."""
    return f"{base_name}-{int(width)}.{extension}"


def artifact_path(output_dir: Path, base_name: str, spec: DerivativeSpec) -> Path:
    """Return the conventional path of `spec`'s derivative of `base_name`."""
    return Path(output_dir) / artifact_name(base_name, spec.width, spec.extension)


def parse_artifact_name(filename: str, extensions: Iterable[str]) -> ArtifactName | None:
    """Recover (base, width, ext) from a derivative file name.

    Returns None when the name does not follow the convention or the
    extension is not one of `extensions`. The base part is greedy, so
    "my-photo-480.webp" yields base "my-photo".
    """
    m = _ARTIFACT_RE.match(filename)
    if not m:
        return None
    ext = m.group("ext")
    if ext not in set(extensions):
        return None
    return ArtifactName(base_name=m.group("base"), width=int(m.group("width")), extension=ext)
