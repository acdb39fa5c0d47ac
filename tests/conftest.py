from __future__ import annotations

import os
from pathlib import Path
import threading
import time

import pytest

from core.config import PipelineConfig
from core.models import OutputFormat
from infrastructure.delete_service import DeleteService

SMALL_FORMATS = (OutputFormat("webp", "WEBP", 80), OutputFormat("jpg", "JPEG", 80))
SMALL_WIDTHS = (16, 32)

# Far enough in the past that anything written during a test is newer.
OLD_NS = int((time.time() - 10_000) * 1e9)


class FakeHandle:
    def __init__(self, codec: FakeCodec, source: Path, width: int | None = None) -> None:
        self._codec = codec
        self._source = source
        self._width = width

    def with_auto_orientation(self) -> FakeHandle:
        with self._codec.lock:
            self._codec.oriented.append(self._source.name)
        return self

    def resized(self, width: int) -> FakeHandle:
        return FakeHandle(self._codec, self._source, width)

    def encode_to(self, path: Path, fmt: OutputFormat) -> None:
        if Path(path).name in self._codec.fail_encode:
            raise OSError(f"disk full writing {Path(path).name}")
        Path(path).write_bytes(f"{self._source.name}|{self._width}|{fmt.encoding}".encode())
        with self._codec.lock:
            self._codec.writes.append(Path(path))


class FakeCodec:
    """Writes small marker files instead of encoding pixels."""

    def __init__(self, fail_decode=(), fail_encode=()) -> None:
        self.fail_decode = set(fail_decode)
        self.fail_encode = set(fail_encode)
        self.decodes: list[str] = []
        self.oriented: list[str] = []
        self.writes: list[Path] = []
        self.lock = threading.Lock()

    def decode(self, path: Path) -> FakeHandle:
        path = Path(path)
        with self.lock:
            self.decodes.append(path.name)
        if path.name in self.fail_decode:
            raise OSError(f"cannot identify image file {path.name}")
        return FakeHandle(self, path)


def make_config(tmp_path: Path, **overrides) -> PipelineConfig:
    params = {
        "input_root": tmp_path / "src",
        "output_root": tmp_path / "out",
        "widths": SMALL_WIDTHS,
        "formats": SMALL_FORMATS,
        "concurrency": 2,
    }
    params.update(overrides)
    return PipelineConfig(**params)


def touch(path: Path, mtime_ns: int | None = None, data: bytes = b"x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


def artifact_names(base: str, config: PipelineConfig) -> set[str]:
    return {f"{base}-{s.width}.{s.extension}" for s in config.matrix}


@pytest.fixture
def codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture
def deleter() -> DeleteService:
    return DeleteService("unlink")


@pytest.fixture
def config(tmp_path: Path) -> PipelineConfig:
    (tmp_path / "src").mkdir()
    return make_config(tmp_path)
