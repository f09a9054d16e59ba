"""Landscape codes -> block-state tokens.

Every lookup is total. Codes we have no mapping for resolve to a loud wool
colour with ``known=False`` so gaps are easy to spot in the generated world
and can be counted by the caller.

See:
- https://github.com/Open-RSC/2D-Landscape-Editor (TileRenderer)
- https://github.com/2003scape/rsc-landscape (terrain-colours.js)
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .coords import BEDROCK_LEVEL, SEA_LEVEL, WALL_HEIGHT
from .sector import BACKWARD_DIAGONAL_BASE, OBJECT_BASE, Tile

BEDROCK = "minecraft:bedrock"
AIR = "minecraft:air"

UNKNOWN_OVERLAY = "minecraft:cyan_wool"
UNKNOWN_WALL = "minecraft:red_wool"
UNKNOWN_ROOF = "minecraft:pink_wool"
UNKNOWN_OBJECT = "minecraft:lime_wool"

HORIZONTAL = ("north", "east", "south", "west")


# --- Ground palette ---

PALETTE_BANDS: Tuple[Tuple[int, str], ...] = (
    (16, "minecraft:stone"),
    (48, "minecraft:lime_terracotta"),
    (80, "minecraft:grass_block"),
    (96, "minecraft:green_concrete_powder"),
    (104, "minecraft:lime_terracotta"),
    (144, "minecraft:dirt_path"),
    (164, "minecraft:packed_mud"),
    (176, "minecraft:dirt"),
    (208, "minecraft:coarse_dirt"),
    (216, "minecraft:podzol"),
    (256, "minecraft:grass_block"),
)
_BAND_BOUNDS = [upper for upper, _ in PALETTE_BANDS]


def material_for_palette(code: int) -> str:
    if code < 0 or code >= _BAND_BOUNDS[-1]:
        raise ValueError(f"palette index out of range: {code}")
    return PALETTE_BANDS[bisect.bisect_right(_BAND_BOUNDS, code)][1]


def support_material(ground: str) -> str:
    # A path block cannot sit on another path block.
    if ground == "minecraft:dirt_path":
        return "minecraft:dirt"
    return ground


# --- Overlays ---


@dataclass(frozen=True)
class OverlayDirective:
    material: str
    indoors: bool = False
    replace_ground: bool = True
    is_void: bool = False
    override_elevation: Optional[int] = None
    known: bool = True


OVERLAYS: Dict[int, OverlayDirective] = {
    1: OverlayDirective("minecraft:gravel"),  # path
    2: OverlayDirective("minecraft:water", replace_ground=False, override_elevation=SEA_LEVEL - BEDROCK_LEVEL),
    3: OverlayDirective("minecraft:spruce_planks", indoors=True),  # wood floor
    4: OverlayDirective("minecraft:dark_oak_planks"),  # bridge
    5: OverlayDirective("minecraft:smooth_stone"),  # swamp
    6: OverlayDirective("minecraft:red_wool", indoors=True),  # red carpet
    7: OverlayDirective("minecraft:muddy_mangrove_roots", indoors=True),  # floor tiles
    8: OverlayDirective("minecraft:black_concrete", is_void=True),
    9: OverlayDirective("minecraft:andesite"),  # cliff
    11: OverlayDirective("minecraft:lava"),
    12: OverlayDirective("minecraft:spruce_planks"),  # sloped bridge (Mage Arena)
    13: OverlayDirective("minecraft:cyan_wool", indoors=True),  # cyan carpet
    14: OverlayDirective("minecraft:gray_glazed_terracotta", indoors=True),  # star summoning circle
    15: OverlayDirective("minecraft:purple_wool", indoors=True),  # purple carpet
    16: OverlayDirective("minecraft:black_concrete", is_void=True),  # digsite hole
    17: OverlayDirective("minecraft:chiseled_quartz_block"),  # marble
    18: OverlayDirective("minecraft:spruce_planks"),  # gnome village floor
    19: OverlayDirective("minecraft:gravel"),  # natural bridge
    20: OverlayDirective("minecraft:oak_log"),  # log bridge
    21: OverlayDirective("minecraft:oak_log"),  # log bridge
    23: OverlayDirective("minecraft:brown_wool"),  # digsite
    24: OverlayDirective(AIR),  # mud cliff, redundant with the ground
    250: OverlayDirective("minecraft:black_concrete"),  # out of bounds
}


def overlay_directive(code: int) -> OverlayDirective:
    found = OVERLAYS.get(code)
    if found is not None:
        return found
    return OverlayDirective(UNKNOWN_OVERLAY, known=False)


def overlay_permitted(layer: int, overlay: Optional[OverlayDirective]) -> bool:
    if overlay is None:
        return False
    # Void tiles only make sense on the ground floor.
    if layer > 0 and overlay.is_void:
        return False
    return True


# --- Wall codes ---

WALL_NONE = "none"
WALL = "wall"
WALL_OBJECT = "object"


@dataclass(frozen=True)
class WallCode:
    kind: str
    value: int
    diagonal: bool = False


def raw_wall_code(tile: Tile) -> int:
    return tile.top_border_wall or tile.right_border_wall or tile.diagonal_walls


def classify_wall_code(code: int, *, diagonal: bool = False) -> WallCode:
    if code <= 0:
        return WallCode(WALL_NONE, 0)
    if code >= OBJECT_BASE:
        return WallCode(WALL_OBJECT, code - OBJECT_BASE)
    if code >= BACKWARD_DIAGONAL_BASE:
        return WallCode(WALL, code - BACKWARD_DIAGONAL_BASE, diagonal)
    return WallCode(WALL, code, diagonal)


def classify_tile(tile: Tile) -> WallCode:
    diagonal = not (tile.top_border_wall or tile.right_border_wall)
    return classify_wall_code(raw_wall_code(tile), diagonal=diagonal)


# --- Walls ---

PANE = "pane"
PANE_OR_GLASS = "pane_or_glass"
OPENING = "opening"
TRAPDOOR = "trapdoor"


@dataclass(frozen=True)
class _WallSpec:
    material: str
    height: int = WALL_HEIGHT
    window: Optional[str] = None
    window_wood: Optional[str] = None
    accent: Optional[str] = None
    above_ground: bool = False
    doorway: bool = False


@dataclass(frozen=True)
class WallDirective:
    material: str
    height: int = WALL_HEIGHT
    door: Optional[Tuple[str, str]] = None
    window: Optional[str] = None
    accent: Optional[str] = None
    must_start_above_ground: bool = False
    known: bool = True

    @property
    def is_doorway(self) -> bool:
        return self.door is not None


_STONE_BRICKS = "minecraft:stone_bricks"
_DOORWAY = _WallSpec("minecraft:glass", above_ground=True, doorway=True)
_GLASS_WINDOW = _WallSpec(_STONE_BRICKS, window=PANE_OR_GLASS)
_OPENING = _WallSpec(AIR, above_ground=True)
_IRON_FENCE = _WallSpec("minecraft:iron_bars", height=2, above_ground=True)
_WOODEN_WALL = _WallSpec("minecraft:spruce_planks", above_ground=True)
_PANELLED = _WallSpec("minecraft:mushroom_stem", accent="minecraft:stripped_jungle_log")

DOORWAY_CODES = (
    2, 3, 9, 23, 24, 31, 33, 37, 38, 39, 40, 41, 44, 45, 49, 50, 51, 55, 61, 67, 69,
    75, 76, 78, 79, 80, 81, 82, 83, 94, 95, 97, 98, 99, 100, 101, 110, 111, 113, 114,
    115, 116, 121, 123, 124, 139, 142, 146, 147, 151, 153, 162, 166, 178, 179, 195,
    196, 197, 198, 199, 206,
)

WALLS: Dict[int, _WallSpec] = {
    1: _WallSpec(_STONE_BRICKS),
    4: _GLASS_WINDOW,
    5: _WallSpec("minecraft:jungle_fence", height=2, above_ground=True),
    6: _IRON_FENCE,
    7: _GLASS_WINDOW,  # stained glass
    8: _WallSpec(_STONE_BRICKS),  # extra tall?
    11: _WallSpec("minecraft:stone_brick_wall", height=1, above_ground=True),
    14: _GLASS_WINDOW,
    15: _PANELLED,
    16: _WallSpec("minecraft:mushroom_stem", window=TRAPDOOR, window_wood="jungle", accent="minecraft:stripped_jungle_log"),
    17: _OPENING,  # overhang above
    19: _WallSpec("minecraft:mossy_stone_bricks"),
    25: _OPENING,  # invisible (Deserted Keep)
    35: _WallSpec(_STONE_BRICKS, window=OPENING),  # arch
    42: _WallSpec("minecraft:cracked_stone_bricks", height=3),  # broken stone wall
    43: _WallSpec("minecraft:granite"),  # Shantay Pass brick
    57: _WOODEN_WALL,
    63: _WallSpec("minecraft:stone_brick_wall", height=2, above_ground=True),
    77: _WallSpec(_STONE_BRICKS),  # Brimhaven interior
    87: _WallSpec("minecraft:barrier", above_ground=True),
    102: _OPENING,  # gap in fence
    117: _WallSpec(_STONE_BRICKS),  # Draynor Manor upper wall
    120: _WOODEN_WALL,
    127: _WallSpec("minecraft:spruce_planks", window=PANE),
    128: _WallSpec("minecraft:jungle_fence", height=1, above_ground=True),
    145: _WallSpec("minecraft:spruce_planks", window=TRAPDOOR, window_wood="oak"),
    148: _OPENING,  # Yanille tower
    149: _OPENING,
    150: _OPENING,
    164: _WallSpec(_STONE_BRICKS),  # agility area
    165: _WallSpec(_STONE_BRICKS),
    176: _WallSpec("minecraft:smooth_sandstone"),  # straw hut
    177: _OPENING,
    182: _IRON_FENCE,  # east of Baxtorian falls
    183: _IRON_FENCE,
    184: _IRON_FENCE,
    185: _IRON_FENCE,
    186: _IRON_FENCE,
    187: _IRON_FENCE,
    194: _IRON_FENCE,
    200: _OPENING,  # gap in fence
    202: _IRON_FENCE,  # broken bridge south of Yanille
}
WALLS.update({code: _DOORWAY for code in DOORWAY_CODES})


def _pane_token(facing: str) -> str:
    # The pane spans the axis perpendicular to the direction the wall faces.
    if facing in ("east", "west"):
        return "minecraft:glass_pane[north=true,south=true]"
    return "minecraft:glass_pane[east=true,west=true]"


def _window_token(spec: _WallSpec, facing: str, is_diagonal: bool) -> Optional[str]:
    if spec.window is None:
        return None
    if spec.window == OPENING:
        return AIR
    if spec.window == TRAPDOOR:
        return f"minecraft:{spec.window_wood}_trapdoor[open=true,facing={facing}]"
    if spec.window == PANE_OR_GLASS and is_diagonal:
        return "minecraft:glass"
    return _pane_token(facing)


def door_tokens(facing: str) -> Tuple[str, str]:
    return (
        f"minecraft:oak_door[facing={facing},half=lower]",
        f"minecraft:oak_door[facing={facing},half=upper]",
    )


def wall_directive(code: int, facing: str = "north", is_diagonal: bool = False) -> WallDirective:
    if facing not in HORIZONTAL:
        raise ValueError(f"unknown facing: {facing}")
    spec = WALLS.get(code)
    if spec is None:
        return WallDirective(UNKNOWN_WALL, known=False)
    return WallDirective(
        material=spec.material,
        height=spec.height,
        # Doorways borrow their frame from the neighbouring walls; glass is a
        # neutral stand-in when no neighbour qualifies.
        door=door_tokens(facing) if spec.doorway else None,
        window=_window_token(spec, facing, is_diagonal),
        accent=spec.accent,
        must_start_above_ground=spec.above_ground,
    )


# --- Roofs ---


@dataclass(frozen=True)
class RoofPiece:
    facing: str
    shape: Optional[str] = None


OUTER_LEFT = "outer_left"


@dataclass(frozen=True)
class RoofDirective:
    material: str
    known: bool = True


# texture -> (full block, stairs block)
ROOFS: Dict[int, Tuple[str, str]] = {
    1: ("minecraft:polished_granite", "minecraft:polished_granite_stairs"),  # tiles
    2: ("minecraft:spruce_planks", "minecraft:spruce_stairs"),  # wood
    3: ("minecraft:cobbled_deepslate", "minecraft:cobbled_deepslate_stairs"),  # grey slate
    6: ("minecraft:smooth_sandstone", "minecraft:smooth_sandstone_stairs"),  # straw
}


def roof_directive(code: int, piece: Optional[RoofPiece] = None) -> RoofDirective:
    found = ROOFS.get(code)
    if found is None:
        return RoofDirective(UNKNOWN_ROOF, known=False)
    block, stairs = found
    if piece is None:
        return RoofDirective(block)
    if piece.shape:
        return RoofDirective(f"{stairs}[facing={piece.facing},shape={piece.shape}]")
    return RoofDirective(f"{stairs}[facing={piece.facing}]")


# --- Objects ---

Offset = Tuple[int, int, int]
ABOVE = (0, 1, 0)


@dataclass(frozen=True)
class ObjectDirective:
    placements: Tuple[Tuple[Offset, str], ...]
    known: bool = True


def _single(token: str) -> ObjectDirective:
    return ObjectDirective(((ABOVE, token),))


OBJECTS: Dict[int, ObjectDirective] = {
    # The host world grows saplings into trees.
    1: _single("minecraft:oak_sapling"),
    2: _single("minecraft:fern"),  # shrub
    3: _single("minecraft:water_cauldron[level=3]"),  # well
    4: _single("minecraft:crafting_table"),  # small table
    5: _single("minecraft:oak_log"),  # tree stump
    6: _single("minecraft:oak_stairs"),  # ladder
    7: _single("minecraft:furnace"),  # range
    8: _single("minecraft:oak_slab"),  # chair
    10: _single("minecraft:oak_planks"),  # long table
    11: _single("minecraft:oak_slab"),  # ornate chair
    13: _single("minecraft:cobblestone"),  # gravestone
    14: _single("minecraft:cobblestone"),
    16: _single("minecraft:white_wool"),  # table with cloth
    20: _single("minecraft:white_wool"),  # church altar
    21: _single("minecraft:smooth_stone"),  # fencepost
    24: _single("minecraft:oak_slab"),  # church pew
    26: ObjectDirective(
        (
            (ABOVE, "minecraft:end_rod[facing=down]"),
            ((0, 2, 0), "minecraft:white_candle[lit=true]"),
        )
    ),  # lampstand
    27: _single("minecraft:water_cauldron[level=3]"),  # fountain
    30: _single("minecraft:oak_planks"),  # counter
    35: _single("minecraft:fern"),
    38: _single("minecraft:poppy"),
    39: _single("minecraft:brown_mushroom"),
    46: _single("minecraft:jungle_fence"),  # railing
    55: _single("minecraft:composter"),  # feeding trough
    61: _single("minecraft:oak_fence_gate"),
    62: _single("minecraft:oak_sign"),  # signpost
    # TODO: orient open double doors once the wall they sit in is known.
    65: _single(AIR),
    90: _single("minecraft:oak_sign"),  # hanging sign
    119: _single("minecraft:furnace"),
}


def object_directive(object_id: int) -> ObjectDirective:
    found = OBJECTS.get(object_id)
    if found is not None:
        return found
    return ObjectDirective(((ABOVE, UNKNOWN_OBJECT),), known=False)
