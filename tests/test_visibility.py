from __future__ import annotations

import math

from jump_arc import JumpArc
from tiles import TileGrid
from visibility import arc_clear, iter_supercover, segment_clear


def test_supercover_horizontal_run():
    assert list(iter_supercover(0, 0, 2, 0)) == [(0, 0), (1, 0), (2, 0)]


def test_supercover_single_tile():
    assert list(iter_supercover(1.2, 1.1, 0.8, 0.9)) == [(1, 1)]


def test_supercover_corner_crossing_yields_both_neighbours():
    tiles = set(iter_supercover(0, 0, 1, 1))
    assert tiles == {(0, 0), (1, 0), (0, 1), (1, 1)}


def test_diagonal_cannot_tunnel_between_touching_walls():
    grid = TileGrid([" P", "P "])
    assert not segment_clear(0, 0, 1, 1, grid)


def test_open_air_is_clear():
    grid = TileGrid(["   ", "   "])
    assert segment_clear(0, 0, 2, 1, grid)


def test_sky_and_sides_are_open_but_below_grid_is_not():
    grid = TileGrid(["  "])
    assert segment_clear(0, -3, 1, -3, grid)
    assert segment_clear(-1, 0, -1, 2, grid)
    assert not segment_clear(0, 0, 0, 1, grid)


def test_undefined_arc_is_never_clear():
    grid = TileGrid(["   ", "   ", "PPP"])
    assert not arc_clear((0, 1), (0, 0), grid, 2, 12)


def test_arc_over_gap_is_clear():
    grid = TileGrid.from_lines(["           ", "           ", "X         F", "PPPP   PPPP"])
    assert arc_clear((3, 2), (7, 2), grid, 2, 12)


def test_arc_blocked_by_platform_under_apex():
    grid = TileGrid.from_lines(["           ", "    PPP    ", "X         F", "PPPP   PPPP"])
    assert not arc_clear((3, 2), (7, 2), grid, 2, 12)


def test_clear_arc_samples_only_traversable_tiles():
    grid = TileGrid.from_lines(["           ", "           ", "X         F", "PPPP   PPPP"])
    assert arc_clear((3, 2), (7, 2), grid, 2, 12)
    for x, y in JumpArc.between(3, 2, 7, 2, 2).sample(48):
        assert grid.is_traversable(math.floor(x + 0.5), math.floor(y + 0.5))
