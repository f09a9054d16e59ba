from __future__ import annotations

import importlib
import sys
import zipfile
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rsc_landscape.sector import Tile, TileGrid, blank_grid, encode_sector  # noqa: E402


def grid_with(size: int, tiles: Optional[Dict[tuple, Tile]] = None) -> TileGrid:
    grid = blank_grid(size)
    for (tile_x, tile_y), tile in (tiles or {}).items():
        grid[tile_x][tile_y] = tile
    return grid


def write_archive(path: Path, entries: Dict[str, bytes]) -> Path:
    with zipfile.ZipFile(str(path), "w") as zf:
        for name, payload in entries.items():
            zf.writestr(name, payload)
    return path


@pytest.fixture()
def make_archive(tmp_path: Path) -> Callable[..., Path]:
    def _make(entries: Dict[str, object], name: str = "Landscape.zip") -> Path:
        encoded = {}
        for entry, value in entries.items():
            encoded[entry] = value if isinstance(value, bytes) else encode_sector(value)
        return write_archive(tmp_path / name, encoded)

    return _make


@pytest.fixture()
def app_module(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    archive_dir = tmp_path / "archives"
    archive_dir.mkdir()
    monkeypatch.setenv("RSC_LANDSCAPE_ARCHIVE_DIR", str(archive_dir))
    monkeypatch.setenv("RSC_LANDSCAPE_OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.setenv("RSC_LANDSCAPE_JOB_HISTORY", "10")

    if "rsc_landscape.main" in sys.modules:
        module = importlib.reload(sys.modules["rsc_landscape.main"])
    else:
        module = importlib.import_module("rsc_landscape.main")
    return module


@pytest.fixture()
def client(app_module):
    with TestClient(app_module.app) as test_client:
        yield test_client
