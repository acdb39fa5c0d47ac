"""Immutable pipeline configuration.

Built once at process start and passed to every component; nothing in the
pipeline reads module-level settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from core.errors import ConfigError
from core.models import DerivativeSpec, OutputFormat, build_matrix

SCHEDULING_MODES = ("batch", "pool")
DELETE_MODES = ("unlink", "trash")

DEFAULT_FORMATS: tuple[OutputFormat, ...] = (
    OutputFormat("webp", "WEBP", 90),
    OutputFormat("avif", "AVIF", 90),
    OutputFormat("jpg", "JPEG", 90),
)
DEFAULT_WIDTHS: tuple[int, ...] = (480, 1000, 1600)


@dataclass(frozen=True)
class PipelineConfig:
    """Everything a run needs to know, fixed for its whole duration.

    Attributes:
        input_root: Directory holding one subdirectory per source gallery.
        output_root: Directory mirrored from `input_root` with derivatives.
        widths: Target pixel widths.
        formats: Target encodings.
        concurrency: Max number of images regenerated at the same time.
        scheduling: "batch" for sequential fixed windows, "pool" for
            semaphore-gated dispatch.
        dry_run: Plan deletions and regeneration without touching the output.
        delete_mode: "unlink" to remove files, "trash" to use the recycle bin.
        audit_log_dir: When set, a CSV of deleted paths is written here.
    """

    input_root: Path = Path("src/images")
    output_root: Path = Path("public/photos")
    widths: tuple[int, ...] = DEFAULT_WIDTHS
    formats: tuple[OutputFormat, ...] = DEFAULT_FORMATS
    concurrency: int = 4
    scheduling: str = "batch"
    dry_run: bool = False
    delete_mode: str = "unlink"
    audit_log_dir: Path | None = None
    matrix: tuple[DerivativeSpec, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_root", Path(self.input_root))
        object.__setattr__(self, "output_root", Path(self.output_root))
        object.__setattr__(self, "widths", tuple(self.widths))
        object.__setattr__(self, "formats", tuple(self.formats))
        if self.audit_log_dir is not None:
            object.__setattr__(self, "audit_log_dir", Path(self.audit_log_dir))
        self._validate()
        object.__setattr__(self, "matrix", build_matrix(self.widths, self.formats))

    def _validate(self) -> None:
        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
            raise ConfigError(f"concurrency must be an integer, got {self.concurrency!r}")
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be >= 1, got {self.concurrency}")
        if not self.widths:
            raise ConfigError("at least one width is required")
        for w in self.widths:
            if isinstance(w, bool) or not isinstance(w, int) or w <= 0:
                raise ConfigError(f"widths must be positive integers, got {w!r}")
        if not self.formats:
            raise ConfigError("at least one output format is required")
        exts = [f.extension for f in self.formats]
        if len(set(exts)) != len(exts):
            raise ConfigError(f"duplicate output extensions: {exts}")
        for f in self.formats:
            if not f.extension or "." in f.extension or f.extension != f.extension.lower():
                raise ConfigError(f"invalid output extension: {f.extension!r}")
            if not 1 <= int(f.quality) <= 100:
                raise ConfigError(f"quality for {f.extension} must be 1..100, got {f.quality}")
        if self.scheduling not in SCHEDULING_MODES:
            raise ConfigError(
                f"scheduling must be one of {SCHEDULING_MODES}, got {self.scheduling!r}"
            )
        if self.delete_mode not in DELETE_MODES:
            raise ConfigError(
                f"delete_mode must be one of {DELETE_MODES}, got {self.delete_mode!r}"
            )

    @property
    def extensions(self) -> frozenset[str]:
        """Derivative extensions recognized when parsing output names."""
        return frozenset(f.extension for f in self.formats)
