"""Binary sector codec for RuneScape Classic landscape entries.

Each sector entry is a square grid of tiles serialised column by column
(outer loop over tile X, inner over tile Y). A tile is six unsigned bytes
followed by one big-endian signed int:

    ground_elevation, ground_material, ground_overlay, roof_texture,
    right_border_wall, top_border_wall, diagonal_walls
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List

SECTOR_SIZE = 48
# Six unsigned bytes plus one four-byte int.
TILE_BYTES = 10

# 0..11999 is a forward diagonal, 12000..47999 a backward diagonal,
# anything from 48000 up is an object id.
BACKWARD_DIAGONAL_BASE = 12000
OBJECT_BASE = 48000


class SectorError(Exception):
    pass


class OutOfBounds(SectorError):
    pass


class MalformedSector(SectorError):
    pass


class ByteReader:
    __slots__ = ("b", "o")

    def __init__(self, b: bytes):
        self.b = b
        self.o = 0

    @property
    def remaining(self) -> int:
        return len(self.b) - self.o

    def read_u8(self) -> int:
        if self.o + 1 > len(self.b):
            raise OutOfBounds(f"read_u8 past end at offset {self.o}")
        v = self.b[self.o]
        self.o += 1
        return v

    def read_i32(self) -> int:
        if self.o + 4 > len(self.b):
            raise OutOfBounds(f"read_i32 past end at offset {self.o}")
        v = struct.unpack(">i", self.b[self.o : self.o + 4])[0]
        self.o += 4
        return v


class ByteWriter:
    __slots__ = ("parts",)

    def __init__(self) -> None:
        self.parts: List[bytes] = []

    def write_u8(self, v: int) -> None:
        self.parts.append(struct.pack(">B", int(v)))

    def write_i32(self, v: int) -> None:
        self.parts.append(struct.pack(">i", int(v)))

    def getvalue(self) -> bytes:
        return b"".join(self.parts)


@dataclass(frozen=True)
class Tile:
    ground_elevation: int = 0
    ground_material: int = 0
    ground_overlay: int = 0
    roof_texture: int = 0
    right_border_wall: int = 0
    top_border_wall: int = 0
    diagonal_walls: int = 0


# grid[tile_x][tile_y]
TileGrid = List[List[Tile]]


def sector_byte_size(size: int = SECTOR_SIZE) -> int:
    return size * size * TILE_BYTES


def decode_sector(raw: bytes, size: int = SECTOR_SIZE) -> TileGrid:
    expected = sector_byte_size(size)
    if len(raw) != expected:
        raise MalformedSector(f"sector payload is {len(raw)} bytes, expected {expected}")

    buf = ByteReader(raw)
    grid: TileGrid = []
    for _x in range(size):
        column: List[Tile] = []
        for _y in range(size):
            column.append(
                Tile(
                    ground_elevation=buf.read_u8(),
                    ground_material=buf.read_u8(),
                    ground_overlay=buf.read_u8(),
                    roof_texture=buf.read_u8(),
                    right_border_wall=buf.read_u8(),
                    top_border_wall=buf.read_u8(),
                    diagonal_walls=buf.read_i32(),
                )
            )
        grid.append(column)
    return grid


def encode_sector(grid: TileGrid) -> bytes:
    size = len(grid)
    out = ByteWriter()
    for column in grid:
        if len(column) != size:
            raise MalformedSector(f"grid is not square: column of {len(column)} tiles in a {size}-wide grid")
        for t in column:
            out.write_u8(t.ground_elevation)
            out.write_u8(t.ground_material)
            out.write_u8(t.ground_overlay)
            out.write_u8(t.roof_texture)
            out.write_u8(t.right_border_wall)
            out.write_u8(t.top_border_wall)
            out.write_i32(t.diagonal_walls)
    return out.getvalue()


def blank_grid(size: int = SECTOR_SIZE) -> TileGrid:
    return [[Tile() for _ in range(size)] for _ in range(size)]
