from __future__ import annotations

import logging

import pygame
import pytest

from models import TileLegend
from tiles import TileGrid


def test_from_lines_pads_short_rows():
    grid = TileGrid.from_lines(["X", "PPP"])
    assert grid.rows == ["X  ", "PPP"]
    assert grid.width == 3
    assert grid.height == 2


def test_from_lines_rejects_empty_map():
    with pytest.raises(ValueError):
        TileGrid.from_lines([])


def test_platform_symbol_is_case_insensitive():
    grid = TileGrid(["pP"])
    assert grid.is_platform(0, 0)
    assert grid.is_platform(1, 0)
    assert not grid.is_traversable(0, 0)


def test_traversable_outside_rows():
    grid = TileGrid(["P", "   "])
    assert grid.is_traversable(0, -1)  # sky
    assert grid.is_traversable(2, 0)  # past the end of a short row
    assert not grid.is_traversable(0, 2)  # below the grid
    assert not grid.is_traversable(0, 0)


def test_markers_and_hazards_are_distinguished():
    grid = TileGrid(["XAFS "])
    assert all(grid.is_traversable(x, 0) for x in (0, 1, 2, 4))
    assert grid.cell(3, 0) == grid.legend.hazard
    assert not grid.is_traversable(3, 0)
    assert grid.find_marker("F") == (2, 0)
    assert grid.find_marker("Q") is None


def test_custom_legend():
    legend = TileLegend(platform="#", empty=".")
    grid = TileGrid.from_lines(["..", "#"], legend)
    assert grid.rows[1] == "#."
    assert grid.is_standable(0, 0)
    assert not grid.is_standable(1, 0)


def test_update_region_repeats_pattern():
    grid = TileGrid(["     "])
    assert grid.update_region(0, 0, "PS", 5)
    assert grid.rows == ["PSPSP"]


def test_update_region_truncates_pattern():
    grid = TileGrid(["     "])
    assert grid.update_region(0, 1, "PPPP", 2)
    assert grid.rows == [" PP  "]


@pytest.mark.parametrize(
    "row,col,length",
    [(-1, 0, 1), (2, 0, 1), (0, -1, 2), (0, 4, 2), (0, 0, 0)],
)
def test_update_region_rejects_out_of_bounds(caplog, row, col, length):
    grid = TileGrid(["     ", "     "])
    with caplog.at_level(logging.WARNING, logger="tiles"):
        assert not grid.update_region(row, col, "P", length)
    assert grid.rows == ["     ", "     "]
    assert "rejected" in caplog.text


def test_copy_is_independent():
    grid = TileGrid(["   "])
    clone = grid.copy()
    clone.update_region(0, 0, "P", 1)
    assert grid.rows == ["   "]
    assert clone != grid


def test_platform_blocks_grow_right_then_down():
    grid = TileGrid(["PPP ", "PPP ", "   P"])
    assert grid.platforms() == [pygame.Rect(0, 0, 3, 2), pygame.Rect(3, 2, 1, 1)]


def test_platform_blocks_do_not_overlap():
    grid = TileGrid(["PP  ", "PPPP"])
    rects = grid.platforms()
    assert rects == [pygame.Rect(0, 0, 2, 2), pygame.Rect(2, 1, 2, 1)]
    assert sum(r.w * r.h for r in rects) == 6
