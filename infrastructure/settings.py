"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.config import DEFAULT_FORMATS, DEFAULT_WIDTHS, PipelineConfig
from core.errors import ConfigError
from core.models import OutputFormat


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path | None = None) -> None:
        self._path = Path(settings_path) if settings_path is not None else None
        self._data: dict[str, Any] = {}
        if self._path is None:
            return
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            try:
                self._data = json.load(f)
            except json.JSONDecodeError as ex:
                raise ConfigError(f"Invalid JSON in {self._path}: {ex}") from ex

    @classmethod
    def load_or_empty(cls, settings_path: str | Path) -> JsonSettings:
        """Read `settings_path` if it exists, else return empty settings."""
        if Path(settings_path).exists():
            return cls(settings_path)
        return cls()

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node


def _parse_formats(raw: Any) -> tuple[OutputFormat, ...]:
    # Expect a list like: [{"ext": "webp", "encoding": "WEBP", "quality": 90}, ...]
    if raw is None:
        return DEFAULT_FORMATS
    if not isinstance(raw, list):
        raise ConfigError("pipeline.formats must be a list")
    result: list[OutputFormat] = []
    for item in raw:
        if not isinstance(item, dict) or "ext" not in item:
            raise ConfigError(f"Invalid format entry: {item!r}")
        ext = str(item["ext"]).lower()
        encoding = str(item.get("encoding") or ("JPEG" if ext in ("jpg", "jpeg") else ext.upper()))
        try:
            quality = int(item.get("quality", 90))
        except (ValueError, TypeError) as ex:
            raise ConfigError(f"Invalid quality for {ext}: {item.get('quality')!r}") from ex
        result.append(OutputFormat(extension=ext, encoding=encoding, quality=quality))
    return tuple(result)


def _parse_widths(raw: Any) -> tuple[int, ...]:
    if raw is None:
        return DEFAULT_WIDTHS
    if not isinstance(raw, list):
        raise ConfigError("pipeline.widths must be a list")
    try:
        return tuple(int(w) for w in raw)
    except (ValueError, TypeError) as ex:
        raise ConfigError(f"Invalid widths: {raw!r}") from ex


def load_pipeline_config(settings: JsonSettings) -> PipelineConfig:
    """Build a `PipelineConfig` from settings, using compiled-in defaults for gaps.

    Relative roots stay relative to the working directory.
    """
    defaults = PipelineConfig()

    def _path(key: str, default: Path | None) -> Path | None:
        raw = settings.get(key)
        return default if raw is None else Path(str(raw))

    try:
        concurrency = int(settings.get("pipeline.concurrency", defaults.concurrency))
    except (ValueError, TypeError) as ex:
        raise ConfigError(f"Invalid pipeline.concurrency: {ex}") from ex

    dry_run = settings.get("pipeline.dry_run", defaults.dry_run)
    if not isinstance(dry_run, bool):
        raise ConfigError(f"pipeline.dry_run must be true or false, got {dry_run!r}")

    return PipelineConfig(
        input_root=_path("pipeline.input_root", defaults.input_root),
        output_root=_path("pipeline.output_root", defaults.output_root),
        widths=_parse_widths(settings.get("pipeline.widths")),
        formats=_parse_formats(settings.get("pipeline.formats")),
        concurrency=concurrency,
        scheduling=str(settings.get("pipeline.scheduling", defaults.scheduling)),
        dry_run=dry_run,
        delete_mode=str(settings.get("deletions.mode", defaults.delete_mode)),
        audit_log_dir=_path("deletions.audit_log_dir", None),
    )
