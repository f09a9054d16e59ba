from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Tuple

from .archive import LandscapeArchive, sector_id
from .coords import MAX_SECTOR_X, MAX_SECTOR_Y, MIN_SECTOR_X, MIN_SECTOR_Y, NUM_LAYERS, Pos, world_to_sector
from .sector import SECTOR_SIZE, SectorError
from .synth import SynthesisReport, synthesize_sector
from .world import World

LOG = logging.getLogger("rsc_landscape.driver")

MODE_REGION = "region"
MODE_CHUNK = "chunk"
MODE_FULL = "full"
SELECTION_MODES = (MODE_REGION, MODE_CHUNK, MODE_FULL)

SectorCoord = Tuple[int, int]
SectorRange = Tuple[SectorCoord, SectorCoord]


class ConversionError(RuntimeError):
    """Raised for requests that cannot start a conversion run."""


def resolve_sector_range(mode: str, corner_a: Optional[Pos] = None, corner_b: Optional[Pos] = None) -> SectorRange:
    if mode == MODE_FULL:
        return (MIN_SECTOR_X, MIN_SECTOR_Y), (MAX_SECTOR_X, MAX_SECTOR_Y)
    if mode == MODE_CHUNK:
        if corner_a is None:
            raise ConversionError("chunk mode needs a position")
        sector = world_to_sector(*corner_a)
        return sector, sector
    if mode == MODE_REGION:
        if corner_a is None or corner_b is None:
            raise ConversionError("region mode needs two corners")
        ax, ay = world_to_sector(*corner_a)
        bx, by = world_to_sector(*corner_b)
        # The X flip turns the region's west corner into the larger sector X.
        return (min(ax, bx), min(ay, by)), (max(ax, bx), max(ay, by))
    raise ConversionError(f"Unknown selection mode: {mode}")


def iter_sectors(sector_range: SectorRange) -> Iterator[SectorCoord]:
    (x1, y1), (x2, y2) = sector_range
    for sector_x in range(x1, x2 + 1):
        for sector_y in range(y1, y2 + 1):
            yield sector_x, sector_y


@dataclass
class ConversionContext:
    archive: LandscapeArchive
    world: World
    report: SynthesisReport = field(default_factory=SynthesisReport)
    clean: bool = False
    size: int = SECTOR_SIZE
    num_layers: int = NUM_LAYERS


def convert_sector(ctx: ConversionContext, sector_x: int, sector_y: int) -> bool:
    name = sector_id(0, sector_x, sector_y)
    try:
        sector = ctx.archive.load_layers(sector_x, sector_y, size=ctx.size, num_layers=ctx.num_layers)
    except SectorError as exc:
        LOG.error("Malformed sector %s: %s", name, exc)
        ctx.report.malformed.append(name)
        return False

    if sector.layers[0] is None:
        LOG.info("No ground layer for sector %s, skipping", name)
        ctx.report.skipped.append(name)
        return False

    synthesize_sector(sector, ctx.world, ctx.report, clean=ctx.clean)
    return True


def convert_sectors(ctx: ConversionContext, sectors: Iterable[SectorCoord]) -> SynthesisReport:
    for sector_x, sector_y in sectors:
        convert_sector(ctx, sector_x, sector_y)
    return ctx.report


def log_report(report: SynthesisReport) -> None:
    LOG.info(
        "Conversion done: built=%d skipped=%d malformed=%d blocks=%d",
        len(report.built),
        len(report.skipped),
        len(report.malformed),
        report.placed,
    )
    if report.unknown:
        LOG.warning("Unknown codes encountered (placed as fallback blocks):")
        for (kind, code), count in sorted(report.unknown.items()):
            LOG.warning("  %s=%s count=%d", kind, code, count)
