from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .archive import ArchiveError, LandscapeArchive
from .driver import ConversionContext, SectorRange, convert_sectors, iter_sectors, log_report
from .synth import SynthesisReport
from .world import CommandStreamWorld


@dataclass
class ConversionOutcome:
    built: int
    skipped: int
    malformed: int
    placed: int
    commands: int
    problems: List[str] = field(default_factory=list)


def resolve_archive(archive_dir: Path, name: str) -> Path:
    root = archive_dir.resolve()
    path = (root / name).resolve()
    if path.parent != root:
        raise ArchiveError(f"archive outside of {root}: {name}")
    if not path.is_file():
        raise ArchiveError(f"landscape archive does not exist: {name}")
    return path


def list_sectors(archive_path: Path) -> List[str]:
    with LandscapeArchive.open(archive_path) as archive:
        return archive.sector_ids()


def describe_problems(report: SynthesisReport) -> List[str]:
    problems = [f"skipped sector {name} (no ground layer)" for name in report.skipped]
    problems.extend(f"malformed sector {name}" for name in report.malformed)
    for (kind, code), count in sorted(report.unknown.items()):
        problems.append(f"unknown {kind}={code} count={count}")
    return problems


def run_conversion(archive_path: Path, sector_range: SectorRange, *, clean: bool, output_path: Path) -> ConversionOutcome:
    world = CommandStreamWorld()
    with LandscapeArchive.open(archive_path) as archive:
        ctx = ConversionContext(archive=archive, world=world, clean=clean)
        report = convert_sectors(ctx, iter_sectors(sector_range))
    log_report(report)
    world.write(output_path)

    return ConversionOutcome(
        built=len(report.built),
        skipped=len(report.skipped),
        malformed=len(report.malformed),
        placed=report.placed,
        commands=len(world.lines),
        problems=describe_problems(report),
    )
