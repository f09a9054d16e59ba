"""Landscape (sector, tile) <-> world block coordinates.

The landscape and the world are mirrored on X, so X is flipped both at the
sector level and inside each sector. North is -Z and east is +X in the world;
in tile space that makes the north neighbour (tx, ty - 1) and the east
neighbour (tx - 1, ty).
"""

from __future__ import annotations

from typing import Tuple

from .sector import SECTOR_SIZE

Pos = Tuple[int, int, int]

NUM_LAYERS = 3

# Sector entries start at h0x48y37.
MIN_SECTOR_X = 48
MIN_SECTOR_Y = 37
MAX_SECTOR_X = 68
MAX_SECTOR_Y = 57
NUM_SECTORS_X = MAX_SECTOR_X - MIN_SECTOR_X

SEA_LEVEL = 63
BEDROCK_LEVEL = 60

# With a roof the top wall ring is replaced by the roof; without one the walls
# reach the floor of the layer above.
WALL_HEIGHT = 5
ROOF_HEIGHT = WALL_HEIGHT

CLEAR_HEIGHT = 30


def sector_origin_to_world(sector_x: int, sector_y: int) -> Pos:
    mirrored_x = NUM_SECTORS_X - (sector_x - MIN_SECTOR_X)
    return mirrored_x * SECTOR_SIZE, BEDROCK_LEVEL, (sector_y - MIN_SECTOR_Y) * SECTOR_SIZE


def world_to_sector(x: int, y: int, z: int) -> Tuple[int, int]:
    sector_x = NUM_SECTORS_X - (x // SECTOR_SIZE) + MIN_SECTOR_X
    sector_y = (z // SECTOR_SIZE) + MIN_SECTOR_Y
    return sector_x, sector_y


def tile_to_world(origin: Pos, tile_x: int, tile_y: int, size: int = SECTOR_SIZE) -> Pos:
    ox, oy, oz = origin
    return ox + (size - tile_x - 1), oy, oz + tile_y


def offset(pos: Pos, dx: int = 0, dy: int = 0, dz: int = 0) -> Pos:
    return pos[0] + dx, pos[1] + dy, pos[2] + dz


def with_y(pos: Pos, y: int) -> Pos:
    return pos[0], y, pos[2]
