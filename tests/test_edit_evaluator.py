from __future__ import annotations

import math

import pygame
import pytest

from edit_evaluator import (
    apply_edit,
    evaluate_edits,
    most_expensive_segment,
    removal_edit,
)
from edit_policies import maximize_cost
from level_graph import compile_level_graph
from models import Edit, EditKind, GridRegion, NoPath, Path
from pathfinding import solve
from tiles import TileGrid


def _protected(*markers):
    return [pygame.Rect(x, y + 1, 1, 1) for x, y in markers]


def test_heaviest_interior_segment():
    path = Path(((0, 0), (1, 0), (5, 0), (6, 0)), (1.0, 4.0, 1.0))
    assert most_expensive_segment(path) == 1


def test_first_and_last_edges_are_skipped_when_interior_exists():
    path = Path(((0, 0), (4, 0), (5, 0), (9, 0)), (9.0, 1.0, 9.0))
    assert most_expensive_segment(path) == 1


def test_short_paths_scan_every_edge():
    path = Path(((0, 0), (4, 0), (5, 0)), (7.0, 1.0))
    assert most_expensive_segment(path) == 0


def test_nan_interior_falls_back_to_all_edges():
    path = Path(((0, 0), (1, 0), (2, 0), (3, 0)), (2.0, math.nan, 3.0))
    assert most_expensive_segment(path) == 2


def test_no_segment_without_edges():
    assert most_expensive_segment(NoPath("unreachable")) is None
    assert most_expensive_segment(Path(((0, 0),), ())) is None


def test_no_path_returns_default_platform_under_arc_vertex(gap_grid, physics, editor):
    before = list(gap_grid.rows)
    graph = compile_level_graph(gap_grid, physics)
    assert not solve(graph, (0, 3), (13, 3))

    choice = evaluate_edits(gap_grid, (0, 3), (13, 3), NoPath("unreachable"), physics, editor)

    assert choice.fallback
    assert choice.kind is EditKind.ADD_PLATFORM
    assert choice.target_cell == (7, 2)
    assert choice.edit.regions == (GridRegion(2, 6, "P", 3),)
    assert math.isfinite(choice.cost)
    assert gap_grid.rows == before


def test_default_edit_opens_route(gap_grid, physics, editor):
    choice = evaluate_edits(gap_grid, (0, 3), (13, 3), NoPath("unreachable"), physics, editor)
    assert apply_edit(gap_grid, choice.edit)
    assert gap_grid.rows[2] == "      PPP     "

    path = solve(compile_level_graph(gap_grid, physics), (0, 3), (13, 3))
    assert path
    assert any(y == 1 for _, y in path.nodes)
    assert path.cost == pytest.approx(choice.cost)


def test_candidates_scored_on_copies(narrow_gap_grid, physics, editor):
    before = list(narrow_gap_grid.rows)
    graph = compile_level_graph(narrow_gap_grid, physics)
    path = solve(graph, (0, 2), (10, 2))
    protected = _protected((0, 2), (10, 2))

    choice = evaluate_edits(narrow_gap_grid, (0, 2), (10, 2), path, physics, editor, protected)

    kinds = [c.edit.kind for c in choice.candidates]
    # the landing platform carries the goal, so it cannot be removed
    assert kinds == [EditKind.ADD_PLATFORM, EditKind.ADD_HAZARD]
    assert narrow_gap_grid.rows == before

    platform, hazard = choice.candidates
    assert platform.edit.target_cell == (5, 1)
    assert platform.edit.regions == (GridRegion(1, 4, "P", 3),)
    assert platform.path_found and math.isfinite(platform.cost)
    assert hazard.edit.regions == (GridRegion(2, 7, "S", 1),)
    assert not hazard.path_found and math.isinf(hazard.cost)

    assert choice.kind is EditKind.ADD_PLATFORM
    assert not choice.fallback


def test_opponent_policy_prefers_blocking_edit(narrow_gap_grid, physics, editor):
    graph = compile_level_graph(narrow_gap_grid, physics)
    path = solve(graph, (0, 2), (10, 2))
    choice = evaluate_edits(
        narrow_gap_grid,
        (0, 2),
        (10, 2),
        path,
        physics,
        editor,
        _protected((0, 2), (10, 2)),
        policy=maximize_cost,
    )
    assert choice.kind is EditKind.ADD_HAZARD
    assert math.isinf(choice.cost)


def test_removal_clears_whole_block():
    grid = TileGrid(["    ", "PP  ", "PP  "])
    edit = removal_edit(grid, (0, 0), grid.platforms(), [])
    assert edit.kind is EditKind.REMOVE_PLATFORM
    assert edit.target_cell == (0, 1)
    assert edit.regions == (GridRegion(1, 0, " ", 2), GridRegion(2, 0, " ", 2))
    assert apply_edit(grid, edit)
    assert grid.rows == ["    ", "    ", "    "]


def test_removal_respects_protected_cells():
    grid = TileGrid(["    ", "PP  ", "PP  "])
    assert removal_edit(grid, (0, 0), grid.platforms(), [pygame.Rect(1, 1, 1, 1)]) is None


def test_removal_needs_a_platform_below():
    grid = TileGrid(["    ", "PP  "])
    assert removal_edit(grid, (3, 0), grid.platforms(), []) is None


def test_apply_edit_is_all_or_nothing():
    grid = TileGrid(["    ", "    "])
    edit = Edit(
        EditKind.ADD_PLATFORM,
        (0, 0),
        (GridRegion(0, 0, "P", 2), GridRegion(5, 0, "P", 2)),
    )
    assert not apply_edit(grid, edit)
    assert grid.rows == ["    ", "    "]
