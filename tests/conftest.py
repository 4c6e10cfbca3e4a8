"""Shared fixtures: on-disk extensions and in-memory byte channels."""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]


class ChunkSource:
    """Byte source that returns pre-set chunks, then EOF."""

    def __init__(self, chunks: list[bytes]) -> None:
        self._chunks = list(chunks)
        self.reads = 0

    async def read(self, n: int = -1) -> bytes:
        self.reads += 1
        if not self._chunks:
            return b""
        return self._chunks.pop(0)


@pytest.fixture
def chunk_source() -> Callable[..., ChunkSource]:
    """Factory: ``chunk_source(b"...", b"...")``."""

    def _make(*chunks: bytes) -> ChunkSource:
        return ChunkSource(list(chunks))

    return _make


@pytest.fixture
def sink() -> io.BytesIO:
    return io.BytesIO()


@pytest.fixture
def read_frames() -> Callable[[io.BytesIO], list[dict[str, Any]]]:
    """Decode every frame written to a BytesIO sink."""

    def _read(buffer: io.BytesIO) -> list[dict[str, Any]]:
        raw = buffer.getvalue().decode("utf-8")
        assert raw == "" or raw.endswith("\n")
        return [json.loads(line) for line in raw.splitlines()]

    return _read


@pytest.fixture
def hello_dir() -> Path:
    return REPO_ROOT / "examples" / "hello"


@pytest.fixture
def make_extension(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing ``manifest.json`` and an entrypoint into a fresh dir.

    ``make_extension(source, tools=["a", "b"])`` declares the given tool ids
    and writes *source* as ``main.py``.
    """
    counter = {"n": 0}

    def _make(
        source: str = "tools = {}\n",
        *,
        tools: list[str] | None = None,
        ext_id: str = "sample",
        entrypoint: str = "main.py",
        manifest: dict[str, Any] | None = None,
    ) -> Path:
        counter["n"] += 1
        ext_dir = tmp_path / f"{ext_id}-{counter['n']}"
        ext_dir.mkdir()
        data = manifest or {
            "id": ext_id,
            "name": ext_id.title(),
            "description": f"The {ext_id} extension",
            "entrypoint": entrypoint,
            "tools": [{"id": t, "risk_level": "Safe"} for t in tools or []],
        }
        (ext_dir / "manifest.json").write_text(json.dumps(data), encoding="utf-8")
        (ext_dir / entrypoint).write_text(source, encoding="utf-8")
        return ext_dir

    return _make
