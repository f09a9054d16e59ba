"""Turn a decoded multi-layer sector into block placements.

Structures are built in three passes over every tile (floors, walls, roofs).
The order matters: walls and roofs read the elevation and indoor flags the
floor pass records, floors of an upper layer must not overwrite the walls of
the layer below, and walls placed for one tile must not overwrite the roof
of its neighbour.

Walls in the landscape are 2D edges between tiles, so their 3D side is a
best-effort guess: walls always go on the outdoor side of the edge. An
indoor tile pushes its wall one block into the neighbouring tile; an outdoor
tile keeps it. Some building corners still come out wrong.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .archive import SectorLayers, sector_id
from .coords import BEDROCK_LEVEL, CLEAR_HEIGHT, ROOF_HEIGHT, WALL_HEIGHT, Pos, offset, sector_origin_to_world, tile_to_world, with_y
from .palette import (
    AIR,
    BEDROCK,
    OUTER_LEFT,
    WALL,
    WALL_OBJECT,
    OverlayDirective,
    RoofPiece,
    WallDirective,
    classify_tile,
    material_for_palette,
    object_directive,
    overlay_directive,
    overlay_permitted,
    roof_directive,
    support_material,
    wall_directive,
)
from .sector import SECTOR_SIZE, Tile
from .world import MAX_FILL_VOLUME, World

LOG = logging.getLogger("rsc_landscape.synth")

# Raw ground elevation runs 0..255; every 32 steps is one block.
BASE_ELEVATION = 5
ELEVATION_STEP = 32

# Ground-floor walls reach this far below the floor so they still meet the
# terrain on a slope.
WALL_FOOTING = -5

# (dx, dy) in tile space, searched in this order. East is -x in tile space.
NEIGHBOUR_ORDER: Tuple[Tuple[int, int], ...] = (
    (0, -1),  # north
    (-1, -1),  # north-east
    (-1, 0),  # east
    (-1, 1),  # south-east
    (0, 1),  # south
    (1, 1),  # south-west
    (1, 0),  # west
    (1, -1),  # north-west
)


@dataclass
class SynthesisReport:
    placed: int = 0
    unknown: Counter = field(default_factory=Counter)
    built: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    malformed: List[str] = field(default_factory=list)

    def note_unknown(self, kind: str, code: int) -> None:
        if not self.unknown[(kind, code)]:
            LOG.debug("Unknown %s code: %s", kind, code)
        self.unknown[(kind, code)] += 1


@dataclass(frozen=True)
class TileAnnotation:
    elevation: int
    overlay: Optional[OverlayDirective]
    indoors: bool


class SectorAnnotations:
    """Write-once per (layer, tile) store filled by the floor pass."""

    def __init__(self) -> None:
        self._items: Dict[Tuple[int, int, int], TileAnnotation] = {}

    def put(self, layer: int, tile_x: int, tile_y: int, annotation: TileAnnotation) -> None:
        key = (layer, tile_x, tile_y)
        if key in self._items:
            raise ValueError(f"annotation already recorded for layer={layer} tile=({tile_x}, {tile_y})")
        self._items[key] = annotation

    def get(self, layer: int, tile_x: int, tile_y: int) -> TileAnnotation:
        try:
            return self._items[(layer, tile_x, tile_y)]
        except KeyError:
            raise KeyError(f"no annotation yet for layer={layer} tile=({tile_x}, {tile_y})") from None

    def __len__(self) -> int:
        return len(self._items)


class SectorView:
    def __init__(self, sector: SectorLayers):
        self.sector = sector
        self.size = sector.size
        self.layers = sector.present()

    def tile(self, layer: int, tile_x: int, tile_y: int) -> Tile:
        grid = self.sector.layers[layer]
        if grid is None:
            raise KeyError(f"layer {layer} is not loaded")
        return grid[tile_x][tile_y]

    def neighbour(self, layer: int, tile_x: int, tile_y: int) -> Optional[Tile]:
        if not (0 <= layer < len(self.sector.layers)):
            return None
        grid = self.sector.layers[layer]
        if grid is None:
            return None
        if not (0 <= tile_x < self.size and 0 <= tile_y < self.size):
            return None
        return grid[tile_x][tile_y]


def ground_elevation(tile: Tile, overlay: Optional[OverlayDirective]) -> int:
    if overlay is not None and overlay.override_elevation is not None:
        return overlay.override_elevation
    return BASE_ELEVATION + tile.ground_elevation // ELEVATION_STEP


def is_tile_indoors(overlay: Optional[OverlayDirective], ground_overlay: Optional[OverlayDirective]) -> bool:
    if overlay is None:
        # Upper storeys without a floor (high-ceilinged rooms) are still indoors.
        return bool(ground_overlay and ground_overlay.indoors)
    return overlay.indoors


def wall_facing(tile: Tile, indoors: bool) -> str:
    if indoors:
        return "south" if tile.top_border_wall else "west"
    return "north" if tile.top_border_wall else "east"


def wall_columns(tile: Tile, indoors: bool, pos: Pos) -> List[Tuple[Pos, bool]]:
    """Block columns a wall occupies, each with whether it may hold the door."""
    north = offset(pos, dz=-1)
    east = offset(pos, dx=1)
    if indoors:
        if tile.top_border_wall and tile.right_border_wall:
            # Inside corner: both shifted edges plus the corner between them,
            # with at most one door.
            return [(east, False), (offset(pos, dx=1, dz=-1), False), (north, True)]
        if tile.top_border_wall:
            return [(north, True)]
        if tile.right_border_wall:
            return [(east, True)]
    return [(pos, True)]


class SectorSynthesizer:
    def __init__(self, sector: SectorLayers, world: World, report: Optional[SynthesisReport] = None, origin: Optional[Pos] = None):
        if not sector.layers or sector.layers[0] is None:
            raise ValueError(f"sector ({sector.sector_x}, {sector.sector_y}) has no ground layer")
        self.view = SectorView(sector)
        self.world = world
        self.report = report if report is not None else SynthesisReport()
        self.origin = origin if origin is not None else sector_origin_to_world(sector.sector_x, sector.sector_y)
        self.annotations = SectorAnnotations()

    @property
    def size(self) -> int:
        return self.view.size

    def run(self) -> None:
        size = self.size
        for build in (self.build_floors, self.build_walls, self.build_roofs):
            for tile_x in range(size):
                for tile_y in range(size):
                    build(tile_x, tile_y)

    def _place(self, pos: Pos, block: str) -> None:
        self.world.set_block(pos[0], pos[1], pos[2], block)
        self.report.placed += 1

    def _tile_pos(self, tile_x: int, tile_y: int) -> Pos:
        return tile_to_world(self.origin, tile_x, tile_y, self.size)

    # --- floors ---

    def build_floors(self, tile_x: int, tile_y: int) -> None:
        base = self._tile_pos(tile_x, tile_y)
        floor_y = base[1]
        ground_overlay: Optional[OverlayDirective] = None

        for layer in self.view.layers:
            tile = self.view.tile(layer, tile_x, tile_y)

            overlay: Optional[OverlayDirective] = None
            if tile.ground_overlay:
                overlay = overlay_directive(tile.ground_overlay)
                if not overlay.known:
                    self.report.note_unknown("overlay", tile.ground_overlay)

            if layer == 0:
                ground_overlay = overlay
                ground = material_for_palette(tile.ground_material)
                support = support_material(ground)
                elevation = ground_elevation(tile, overlay)

                self._place(base, BEDROCK)
                for i in range(1, elevation):
                    self._place(with_y(base, floor_y + i), support)
                self._place(with_y(base, floor_y + elevation), ground)
            else:
                elevation = self.annotations.get(0, tile_x, tile_y).elevation + layer * WALL_HEIGHT

            if overlay_permitted(layer, overlay):
                overlay_y = floor_y + elevation
                if not overlay.replace_ground:
                    overlay_y += 1
                self._place(with_y(base, overlay_y), overlay.material)

            self.annotations.put(
                layer,
                tile_x,
                tile_y,
                TileAnnotation(elevation=elevation, overlay=overlay, indoors=is_tile_indoors(overlay, ground_overlay)),
            )

    # --- walls ---

    def build_walls(self, tile_x: int, tile_y: int) -> None:
        base = self._tile_pos(tile_x, tile_y)

        for layer in self.view.layers:
            tile = self.view.tile(layer, tile_x, tile_y)
            annotation = self.annotations.get(layer, tile_x, tile_y)
            code = classify_tile(tile)

            if code.kind == WALL:
                directive = wall_directive(code.value, wall_facing(tile, annotation.indoors), code.diagonal)
                if not directive.known:
                    self.report.note_unknown("wall", code.value)
                for pos, door_allowed in wall_columns(tile, annotation.indoors, base):
                    self.build_wall(layer, tile_x, tile_y, pos, annotation.elevation, directive, door_allowed=door_allowed)
            elif code.kind == WALL_OBJECT:
                self.place_object(code.value, with_y(base, base[1] + annotation.elevation))

    def build_wall(
        self,
        layer: int,
        tile_x: int,
        tile_y: int,
        pos: Pos,
        elevation: int,
        directive: WallDirective,
        *,
        door_allowed: bool = True,
    ) -> None:
        if directive.must_start_above_ground:
            start = 1
        elif layer == 0:
            start = WALL_FOOTING
        else:
            start = 0

        frame = None
        if directive.is_doorway:
            frame = self.neighbouring_wall_material(layer, tile_x, tile_y) or directive.material

        floor_y = self.origin[1] + elevation
        for i in range(start, directive.height + 1):
            block_pos = with_y(pos, floor_y + i)
            if directive.is_doorway:
                lower, upper = directive.door
                if door_allowed and i == 1:
                    block = lower
                elif door_allowed and i == 2:
                    block = upper
                else:
                    block = frame
            elif directive.window and 1 < i < directive.height - 1:
                block = directive.window
            elif directive.accent and i % 4 == 0:
                block = directive.accent
            else:
                block = directive.material
            self._place(block_pos, block)

    def neighbouring_wall_material(self, layer: int, tile_x: int, tile_y: int) -> Optional[str]:
        for dx, dy in NEIGHBOUR_ORDER:
            tile = self.view.neighbour(layer, tile_x + dx, tile_y + dy)
            if tile is None:
                continue
            code = classify_tile(tile)
            if code.kind != WALL:
                continue
            directive = wall_directive(code.value, is_diagonal=code.diagonal)
            if directive.is_doorway:
                continue
            return directive.material
        return None

    def place_object(self, object_id: int, ground_pos: Pos) -> None:
        directive = object_directive(object_id)
        if not directive.known:
            self.report.note_unknown("object", object_id)
        for (dx, dy, dz), block in directive.placements:
            self._place(offset(ground_pos, dx, dy, dz), block)

    # --- roofs ---

    def place_roof(self, texture: int, pos: Pos, piece: Optional[RoofPiece] = None) -> None:
        directive = roof_directive(texture, piece)
        if not directive.known:
            self.report.note_unknown("roof", texture)
        self._place(pos, directive.material)

    def build_roofs(self, tile_x: int, tile_y: int) -> None:
        base = self._tile_pos(tile_x, tile_y)

        for layer in self.view.layers:
            tile = self.view.tile(layer, tile_x, tile_y)
            annotation = self.annotations.get(layer, tile_x, tile_y)
            pos = with_y(base, base[1] + annotation.elevation + ROOF_HEIGHT)

            north = self.view.neighbour(layer, tile_x, tile_y - 1)
            east = self.view.neighbour(layer, tile_x - 1, tile_y)
            north_east = self.view.neighbour(layer, tile_x - 1, tile_y - 1)

            if tile.roof_texture:
                texture = tile.roof_texture
                # Edges are only refined when both neighbours are known; at a
                # sector boundary the roof just stops.
                if north is not None and east is not None:
                    if not north.roof_texture and not east.roof_texture:
                        self.place_roof(texture, offset(pos, dx=1, dz=-1), RoofPiece("west", OUTER_LEFT))
                        self.place_roof(texture, offset(pos, dx=1), RoofPiece("west"))
                        self.place_roof(texture, offset(pos, dz=-1), RoofPiece("south"))
                    elif not north.roof_texture:
                        self.place_roof(texture, offset(pos, dz=-1), RoofPiece("south"))
                    elif not east.roof_texture:
                        self.place_roof(texture, offset(pos, dx=1), RoofPiece("west"))
                self.place_roof(texture, pos)

            elif tile.top_border_wall:
                # Outside wall: the roof of the tile beyond may need an edge here.
                if north is not None and north_east is not None and north.roof_texture:
                    if not north_east.roof_texture:
                        self.place_roof(north.roof_texture, offset(pos, dx=1, dz=-1), RoofPiece("north", OUTER_LEFT))
                    self.place_roof(north.roof_texture, offset(pos, dz=-1), RoofPiece("north"))

            elif tile.right_border_wall:
                if east is not None and north_east is not None and east.roof_texture:
                    if not north_east.roof_texture:
                        self.place_roof(east.roof_texture, offset(pos, dx=1, dz=-1), RoofPiece("south", OUTER_LEFT))
                    self.place_roof(east.roof_texture, offset(pos, dx=1), RoofPiece("east"))

            elif north_east is not None and north_east.roof_texture:
                self.place_roof(north_east.roof_texture, offset(pos, dx=1, dz=-1), RoofPiece("east", OUTER_LEFT))


def clear_sector(origin: Pos, world: World, size: int = SECTOR_SIZE) -> None:
    ox, _oy, oz = origin
    rows = max(1, MAX_FILL_VOLUME // (size * size))
    top = BEDROCK_LEVEL + CLEAR_HEIGHT - 1
    y = BEDROCK_LEVEL
    while y <= top:
        y2 = min(top, y + rows - 1)
        world.fill(ox, y, oz, ox + size - 1, y2, oz + size - 1, AIR)
        y = y2 + 1


def synthesize_sector(sector: SectorLayers, world: World, report: Optional[SynthesisReport] = None, *, origin: Optional[Pos] = None, clean: bool = False) -> SynthesisReport:
    synth = SectorSynthesizer(sector, world, report, origin)
    if clean:
        clear_sector(synth.origin, world, synth.size)
    LOG.info("Processing sector: %s", sector_id(0, sector.sector_x, sector.sector_y))
    synth.run()
    synth.report.built.append(sector_id(0, sector.sector_x, sector.sector_y))
    return synth.report
