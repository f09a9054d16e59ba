from __future__ import annotations

import pytest

from rsc_landscape.archive import SectorLayers
from rsc_landscape.sector import Tile
from rsc_landscape.synth import (
    SectorAnnotations,
    SectorSynthesizer,
    SynthesisReport,
    TileAnnotation,
    clear_sector,
    synthesize_sector,
)
from rsc_landscape.world import CommandStreamWorld, MemoryWorld

from conftest import grid_with

ORIGIN = (0, 60, 0)
WOOD_FLOOR = 3
STONE_BRICKS = "minecraft:stone_bricks"


def build(size, ground, *upper, world=None, report=None):
    layers = [grid_with(size, ground)]
    layers.extend(grid_with(size, tiles) if tiles is not None else None for tiles in upper)
    while len(layers) < 3:
        layers.append(None)
    world = world if world is not None else MemoryWorld()
    synth = SectorSynthesizer(SectorLayers(50, 50, layers), world, report, ORIGIN)
    synth.run()
    return synth, world


def test_flat_tile_builds_bedrock_support_and_ground():
    _, world = build(1, {(0, 0): Tile(ground_elevation=0, ground_material=0)})

    assert world.log == [
        ((0, 60, 0), "minecraft:bedrock"),
        ((0, 61, 0), "minecraft:stone"),
        ((0, 62, 0), "minecraft:stone"),
        ((0, 63, 0), "minecraft:stone"),
        ((0, 64, 0), "minecraft:stone"),
        ((0, 65, 0), "minecraft:stone"),
    ]


def test_ground_elevation_steps_every_32():
    synth, world = build(1, {(0, 0): Tile(ground_elevation=64, ground_material=70)})

    assert synth.annotations.get(0, 0, 0).elevation == 7
    assert world.block_name(0, 67, 0) == "minecraft:grass_block"
    assert world.block_name(0, 66, 0) == "minecraft:grass_block"


def test_water_overrides_elevation_and_sits_above_ground():
    _, world = build(1, {(0, 0): Tile(ground_elevation=200, ground_overlay=2)})

    assert world.block_name(0, 63, 0) == "minecraft:stone"
    assert world.block_name(0, 64, 0) == "minecraft:water"
    assert world.block_name(0, 65, 0) == "minecraft:air"


def test_upper_layer_stacks_on_ground_and_inherits_indoors():
    synth, world = build(
        1,
        {(0, 0): Tile(ground_overlay=WOOD_FLOOR)},
        {(0, 0): Tile()},
    )

    upstairs = synth.annotations.get(1, 0, 0)
    assert upstairs.elevation == 10
    assert upstairs.overlay is None
    assert upstairs.indoors is True
    assert world.block_name(0, 65, 0) == "minecraft:spruce_planks"


def test_void_overlay_suppressed_upstairs():
    _, world = build(
        1,
        {(0, 0): Tile(ground_overlay=8)},
        {(0, 0): Tile(ground_overlay=8)},
    )

    assert world.placements_of("minecraft:black_concrete") == [(0, 65, 0)]


def test_outdoor_wall_stays_on_tile_and_reaches_below_floor():
    _, world = build(1, {(0, 0): Tile(top_border_wall=1)})

    placed = world.placements_of(STONE_BRICKS)
    assert placed == [(0, y, 0) for y in range(60, 71)]


def test_indoor_top_wall_moves_north():
    _, world = build(3, {(1, 1): Tile(ground_overlay=WOOD_FLOOR, top_border_wall=1)})

    # Tile (1, 1) sits at world (1, 60, 1); north is -z.
    assert {(x, z) for x, _, z in world.placements_of(STONE_BRICKS)} == {(1, 0)}


def test_indoor_right_wall_moves_east():
    _, world = build(3, {(1, 1): Tile(ground_overlay=WOOD_FLOOR, right_border_wall=1)})

    assert {(x, z) for x, _, z in world.placements_of(STONE_BRICKS)} == {(2, 1)}


def test_inside_corner_doorway_places_one_door_and_blends_frame():
    _, world = build(
        3,
        {
            (1, 1): Tile(ground_overlay=WOOD_FLOOR, top_border_wall=2, right_border_wall=2),
            # South neighbour, outdoors, so its own wall stays on (1, 60, 2).
            (1, 2): Tile(right_border_wall=19),
        },
    )

    lower = "minecraft:oak_door[facing=south,half=lower]"
    upper = "minecraft:oak_door[facing=south,half=upper]"
    assert world.placements_of(lower) == [(1, 66, 0)]
    assert world.placements_of(upper) == [(1, 67, 0)]

    mossy = "minecraft:mossy_stone_bricks"
    for y in range(66, 71):
        assert world.block_name(2, y, 1) == mossy
        assert world.block_name(2, y, 0) == mossy
    for y in range(68, 71):
        assert world.block_name(1, y, 0) == mossy
    assert world.placements_of("minecraft:glass") == []


def test_doorway_without_wall_neighbours_uses_glass_frame():
    _, world = build(1, {(0, 0): Tile(top_border_wall=2)})

    assert world.placements_of("minecraft:oak_door[facing=north,half=lower]") == [(0, 66, 0)]
    assert world.placements_of("minecraft:glass") == [(0, y, 0) for y in range(68, 71)]


def test_window_wall_places_panes_between_courses():
    _, world = build(1, {(0, 0): Tile(top_border_wall=127)})

    pane = "minecraft:glass_pane[east=true,west=true]"
    assert world.placements_of(pane) == [(0, 67, 0), (0, 68, 0)]


def test_wall_object_is_placed_above_ground():
    _, world = build(1, {(0, 0): Tile(diagonal_walls=48026)})

    assert world.block_name(0, 66, 0) == "minecraft:end_rod[facing=down]"
    assert world.block_name(0, 67, 0) == "minecraft:white_candle[lit=true]"


def test_unknown_codes_are_counted():
    report = SynthesisReport()
    build(1, {(0, 0): Tile(ground_overlay=200, top_border_wall=250)}, report=report)

    assert report.unknown[("overlay", 200)] == 1
    assert report.unknown[("wall", 250)] == 1
    assert report.placed > 0


def test_roof_without_known_neighbours_is_one_plain_block():
    _, world = build(2, {(1, 0): Tile(roof_texture=2)})

    roofs = [(pos, block) for pos, block in world.log if "spruce" in block]
    assert roofs == [((0, 70, 0), "minecraft:spruce_planks")]


def test_roof_edges_get_stairs():
    _, world = build(3, {(1, 1): Tile(roof_texture=2)})

    assert ((2, 70, 0), "minecraft:spruce_stairs[facing=west,shape=outer_left]") in world.log
    assert ((2, 70, 1), "minecraft:spruce_stairs[facing=west]") in world.log
    assert ((1, 70, 0), "minecraft:spruce_stairs[facing=south]") in world.log
    assert ((1, 70, 1), "minecraft:spruce_planks") in world.log


def test_annotations_are_write_once():
    annotations = SectorAnnotations()
    annotations.put(0, 1, 2, TileAnnotation(elevation=5, overlay=None, indoors=False))

    with pytest.raises(ValueError):
        annotations.put(0, 1, 2, TileAnnotation(elevation=6, overlay=None, indoors=False))
    with pytest.raises(KeyError):
        annotations.get(1, 1, 2)


def test_synthesizer_requires_ground_layer():
    with pytest.raises(ValueError):
        SectorSynthesizer(SectorLayers(50, 50, [None, grid_with(1), None]), MemoryWorld())


def test_clear_sector_uses_fill_slabs():
    world = CommandStreamWorld()
    clear_sector((96, 60, 48), world)

    assert world.lines == [
        "fill 96 60 48 143 73 95 minecraft:air replace",
        "fill 96 74 48 143 87 95 minecraft:air replace",
        "fill 96 88 48 143 89 95 minecraft:air replace",
    ]


def test_synthesize_sector_clears_first_and_records_sector():
    world = CommandStreamWorld()
    sector = SectorLayers(50, 50, [grid_with(1), None, None])

    report = synthesize_sector(sector, world, origin=ORIGIN, clean=True)

    assert world.lines[0].startswith("fill 0 60 0 0 ")
    assert world.lines[-1] == "setblock 0 65 0 minecraft:stone replace"
    assert report.built == ["h0x50y50"]


def test_top_wall_tile_edges_the_roof_beyond_it():
    _, world = build(3, {(1, 1): Tile(top_border_wall=1), (1, 0): Tile(roof_texture=2)})

    # Tile (1, 1) is at world (1, 60, 1); its north neighbour holds the roof.
    assert ((1, 70, 0), "minecraft:spruce_stairs[facing=north]") in world.log
    assert ((2, 70, 0), "minecraft:spruce_stairs[facing=north,shape=outer_left]") in world.log


def test_right_wall_tile_edges_the_roof_to_the_east():
    _, world = build(3, {(1, 1): Tile(right_border_wall=1), (0, 1): Tile(roof_texture=2)})

    assert ((2, 70, 1), "minecraft:spruce_stairs[facing=east]") in world.log
    assert ((2, 70, 0), "minecraft:spruce_stairs[facing=south,shape=outer_left]") in world.log


def test_roofed_neighbour_to_the_north_east_gets_a_corner():
    _, world = build(2, {(0, 0): Tile(roof_texture=2)})

    assert ((1, 70, 0), "minecraft:spruce_planks") in world.log
    assert world.log[-1] == ((1, 70, 0), "minecraft:spruce_stairs[facing=east,shape=outer_left]")


def test_doorway_frame_skips_doorways_and_follows_neighbour_order():
    _, world = build(
        3,
        {
            (1, 1): Tile(top_border_wall=2),
            (1, 0): Tile(top_border_wall=3),  # north, another doorway
            (0, 0): Tile(top_border_wall=19),  # north-east
            (0, 1): Tile(top_border_wall=43),  # east
        },
    )

    assert world.placements_of("minecraft:oak_door[facing=north,half=lower]")[-1] == (1, 66, 1)
    for y in range(68, 71):
        assert world.block_name(1, y, 1) == "minecraft:mossy_stone_bricks"
