from __future__ import annotations

import logging

import pytest

from rsc_landscape.archive import LandscapeArchive
from rsc_landscape.driver import (
    ConversionContext,
    ConversionError,
    convert_sectors,
    iter_sectors,
    log_report,
    resolve_sector_range,
)
from rsc_landscape.sector import OutOfBounds, Tile
from rsc_landscape.synth import SynthesisReport
from rsc_landscape.world import MemoryWorld

from conftest import grid_with


def test_full_range_covers_every_sector():
    sector_range = resolve_sector_range("full")
    assert sector_range == ((48, 37), (68, 57))
    assert len(list(iter_sectors(sector_range))) == 21 * 21


def test_chunk_range_is_the_sector_under_the_position():
    assert resolve_sector_range("chunk", (900, 80, 656)) == ((50, 50), (50, 50))


def test_region_range_is_normalised():
    # West corner has the smaller world X but the larger sector X.
    sector_range = resolve_sector_range("region", (240, 60, 432), (400, 90, 600))
    assert sector_range == ((60, 46), (63, 49))
    assert list(iter_sectors(((60, 46), (61, 47)))) == [(60, 46), (60, 47), (61, 46), (61, 47)]


def test_region_requires_both_corners():
    with pytest.raises(ConversionError):
        resolve_sector_range("region", (0, 0, 0))


def test_unknown_mode_rejected():
    with pytest.raises(ConversionError, match="Unknown selection mode"):
        resolve_sector_range("everything")


def test_missing_and_malformed_sectors_do_not_abort(make_archive, caplog):
    path = make_archive(
        {
            "h0x50y50": grid_with(2, {(0, 0): Tile(ground_material=20)}),
            "h0x50y52": b"\x00" * 3,
            "h0x50y53": grid_with(2),
        }
    )

    with caplog.at_level(logging.INFO, logger="rsc_landscape"):
        with LandscapeArchive.open(path) as archive:
            ctx = ConversionContext(archive=archive, world=MemoryWorld(), size=2)
            report = convert_sectors(ctx, iter_sectors(((50, 50), (50, 53))))

    assert report.built == ["h0x50y50", "h0x50y53"]
    assert report.skipped == ["h0x50y51"]
    assert report.malformed == ["h0x50y52"]
    assert "Malformed sector h0x50y52" in caplog.text


def test_log_report_summarises_unknown_codes(caplog):
    report = SynthesisReport()
    report.note_unknown("wall", 250)
    report.note_unknown("wall", 250)

    with caplog.at_level(logging.INFO, logger="rsc_landscape.driver"):
        log_report(report)

    assert "wall=250 count=2" in caplog.text


def test_decode_fault_in_one_sector_does_not_abort_batch(make_archive, monkeypatch):
    path = make_archive({"h0x50y50": grid_with(2), "h0x50y51": grid_with(2)})

    with LandscapeArchive.open(path) as archive:
        load_layers = archive.load_layers

        def flaky_load(sector_x, sector_y, **kwargs):
            if sector_y == 50:
                raise OutOfBounds("read_i32 past end at offset 26")
            return load_layers(sector_x, sector_y, **kwargs)

        monkeypatch.setattr(archive, "load_layers", flaky_load)
        ctx = ConversionContext(archive=archive, world=MemoryWorld(), size=2)
        report = convert_sectors(ctx, iter_sectors(((50, 50), (50, 51))))

    assert report.malformed == ["h0x50y50"]
    assert report.built == ["h0x50y51"]


def test_wrong_length_entry_is_malformed_not_fatal(make_archive):
    path = make_archive({"h0x50y50": b"\x00" * 28, "h0x50y51": grid_with(2)})

    with LandscapeArchive.open(path) as archive:
        ctx = ConversionContext(archive=archive, world=MemoryWorld(), size=2)
        report = convert_sectors(ctx, iter_sectors(((50, 50), (50, 51))))

    assert report.malformed == ["h0x50y50"]
    assert report.built == ["h0x50y51"]
