"""Shared fixtures for the sampler test suite."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


def pattern_bytes(length: int, seed: int = 0) -> bytes:
    """Deterministic, non-repeating-looking content of the given length."""
    return bytes((i * 31 + seed) % 251 for i in range(length))


def flip_byte(data: bytes, offset: int) -> bytes:
    """Copy of data with the byte at offset changed."""
    changed = bytearray(data)
    changed[offset] = (changed[offset] + 1) % 256
    return bytes(changed)


@pytest.fixture
def write_file(tmp_path: Path):
    """Write bytes to a path relative to tmp_path, creating parent directories."""

    def _write(relative: str, data: bytes) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def make_pair(write_file):
    """Create a base file and a comparison file; the comparison may be modified."""

    def _make(length: int, flip_at: tuple[int, ...] = (), name: str = "data.raw") -> tuple[Path, Path]:
        content = pattern_bytes(length)
        changed = content
        for offset in flip_at:
            changed = flip_byte(changed, offset)
        base = write_file(f"base/{name}", content)
        comparison = write_file(f"comparison/{name}", changed)
        return base, comparison

    return _make


@pytest.fixture
def dataset_catalog(tmp_path: Path):
    """Write a JSON dataset catalog and return its path."""

    def _catalog(entries: dict) -> Path:
        path = tmp_path / "datasets.json"
        path.write_text(json.dumps(entries), encoding="utf-8")
        return path

    return _catalog
