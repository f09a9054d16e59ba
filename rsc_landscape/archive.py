from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .coords import NUM_LAYERS
from .sector import SECTOR_SIZE, TileGrid, decode_sector

LOG = logging.getLogger("rsc_landscape.archive")


class ArchiveError(RuntimeError):
    """Raised when the landscape archive cannot be opened or read."""


def sector_id(layer: int, sector_x: int, sector_y: int) -> str:
    return f"h{layer}x{sector_x}y{sector_y}"


@dataclass
class SectorLayers:
    sector_x: int
    sector_y: int
    layers: List[Optional[TileGrid]]

    @property
    def size(self) -> int:
        for grid in self.layers:
            if grid is not None:
                return len(grid)
        return SECTOR_SIZE

    def present(self) -> List[int]:
        return [layer for layer, grid in enumerate(self.layers) if grid is not None]


class LandscapeArchive:
    """Sector entries (``h<layer>x<sx>y<sy>``) stored in a zip container."""

    def __init__(self, zf: zipfile.ZipFile, path: Optional[Path] = None):
        self._zf = zf
        self.path = path
        self._names = set(zf.namelist())

    @classmethod
    def open(cls, path: Path) -> "LandscapeArchive":
        path = Path(path)
        if not path.exists():
            raise ArchiveError(f"landscape archive does not exist: {path}")
        try:
            zf = zipfile.ZipFile(str(path), "r")
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveError(f"cannot read landscape archive {path}: {exc}") from exc
        return cls(zf, path)

    def close(self) -> None:
        self._zf.close()

    def __enter__(self) -> "LandscapeArchive":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def sector_ids(self) -> List[str]:
        return sorted(self._names)

    def lookup_sector(self, layer: int, sector_x: int, sector_y: int) -> Optional[bytes]:
        name = sector_id(layer, sector_x, sector_y)
        if name not in self._names:
            return None
        try:
            return self._zf.read(name)
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveError(f"cannot read sector {name}: {exc}") from exc

    def load_layers(self, sector_x: int, sector_y: int, *, size: int = SECTOR_SIZE, num_layers: int = NUM_LAYERS) -> SectorLayers:
        layers: List[Optional[TileGrid]] = []
        for layer in range(num_layers):
            name = sector_id(layer, sector_x, sector_y)
            raw = self.lookup_sector(layer, sector_x, sector_y)
            if raw is None:
                LOG.info("Missing sector entry, skipping layer: %s", name)
                layers.append(None)
                continue
            LOG.info("Loading sector: %s", name)
            layers.append(decode_sector(raw, size))
        return SectorLayers(sector_x=sector_x, sector_y=sector_y, layers=layers)
