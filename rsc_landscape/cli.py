"""
Fill a region of a Minecraft world with terrain from a RuneScape Classic
landscape archive, as a stream of vanilla commands.

Usage (examples):
  Generate the entire map:
    rsc-landscape Landscape.data full --output /tmp/rsc-full.cmds

  Generate the sector containing a position:
    rsc-landscape Landscape.data chunk --at 900 80 656

  Generate sectors covering a selected region, clearing them first:
    rsc-landscape Landscape.data region --from 240 60 432 --to 400 90 600 --clean

Useful locations (world coordinates):
  Origin (top-left):  240 80 432
  Lumbridge:          900 80 656
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from .archive import ArchiveError, LandscapeArchive
from .driver import SELECTION_MODES, ConversionContext, ConversionError, convert_sectors, iter_sectors, log_report, resolve_sector_range
from .settings import LOG_FORMAT, Settings
from .world import CommandStreamWorld

LOG = logging.getLogger("rsc_landscape.cli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="rsc-landscape",
        description="Convert a RuneScape Classic landscape archive into Minecraft commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    ap.add_argument("archive", help="Path to the landscape archive (zip of h<layer>x<x>y<y> entries)")
    ap.add_argument("mode", choices=SELECTION_MODES, help="Which sectors to generate")
    ap.add_argument("--at", nargs=3, type=int, metavar=("X", "Y", "Z"), help="Position inside the sector (chunk mode)")
    ap.add_argument("--from", dest="corner_a", nargs=3, type=int, metavar=("X", "Y", "Z"), help="First region corner (region mode)")
    ap.add_argument("--to", dest="corner_b", nargs=3, type=int, metavar=("X", "Y", "Z"), help="Second region corner (region mode)")
    ap.add_argument("--clean", action="store_true", help="Clear each sector's volume with air before building")
    ap.add_argument("--output", default="-", help="Output file (default stdout)")
    ap.add_argument("--log-level", default=None, help="Logging level (default: RSC_LANDSCAPE_LOG_LEVEL or INFO)")
    return ap


def main(argv: List[str]) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    if args.mode == "chunk":
        corners = (args.at, None)
    else:
        corners = (args.corner_a, args.corner_b)
    corner_a, corner_b = (tuple(c) if c else None for c in corners)
    try:
        sector_range = resolve_sector_range(args.mode, corner_a, corner_b)  # type: ignore[arg-type]
    except ConversionError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    LOG.info("Attempting %s generation: sectors %s..%s", args.mode, sector_range[0], sector_range[1])
    if args.clean:
        LOG.info("Clean enabled")

    try:
        archive = LandscapeArchive.open(Path(args.archive))
    except ArchiveError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    world = CommandStreamWorld()
    with archive:
        ctx = ConversionContext(archive=archive, world=world, clean=args.clean)
        try:
            report = convert_sectors(ctx, iter_sectors(sector_range))
        except ArchiveError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 2
    log_report(report)

    if args.output == "-" or args.output == "":
        sys.stdout.write(world.payload())
        return 0

    world.write(Path(args.output))
    return 0


def run() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
