from __future__ import annotations

import json

import session as session_module

from conftest import GAP_LEVEL, NARROW_GAP_LEVEL
from level_loader import build_level_from_lines
from models import EditKind, NoPath
from session import LevelSession, protected_cells

WALK_ONLY = {"physics": {"short_jump_cost": 3.0, "long_jump_cost": 5.0}}


def test_plan_on_load():
    session = LevelSession(build_level_from_lines("flat", ["X    F", "PPPPPP"]), WALK_ONLY)
    assert session.spawn == (0, 0)
    assert session.goal == (5, 0)
    assert session.path.nodes == tuple((x, 0) for x in range(6))
    assert session.current_segment.kind == "walk"


def test_headless_walk_reaches_goal():
    session = LevelSession(build_level_from_lines("flat", ["X    F", "PPPPPP"]), WALK_ONLY)
    assert session.run_headless(max_ticks=600)
    assert session.replans == 0
    assert abs(session.body.tile_position.x - 5) < 0.2


def test_headless_jump_across_gap():
    session = LevelSession(build_level_from_lines("narrow", NARROW_GAP_LEVEL))
    assert session.path
    assert session.run_headless(max_ticks=1200)
    assert session.current_node() == (10, 2)


def test_goal_under_spawn_is_reached_immediately():
    session = LevelSession(build_level_from_lines("same", ["F", "P"]), {})
    assert session.reached_goal


def test_unreachable_level_stops_headless_run():
    session = LevelSession(build_level_from_lines("gap", GAP_LEVEL))
    assert session.path == NoPath("unreachable")
    assert not session.run_headless(max_ticks=100)
    assert session.ticks == 0


def test_suggest_then_apply_edit():
    session = LevelSession(build_level_from_lines("gap", GAP_LEVEL))
    before = list(session.level.grid.rows)

    choice = session.suggest_edit()
    assert choice.kind is EditKind.ADD_PLATFORM
    assert choice.fallback
    assert session.level.grid.rows == before

    assert session.apply_edit(choice)
    assert session.path
    assert session.path.goal == (13, 3)
    assert len(session.level.platforms) == 3


def test_protected_cells_sit_under_markers():
    level = build_level_from_lines("flat", ["X A F", "PPPPP"])
    assert [(r.x, r.y) for r in protected_cells(level)] == [(0, 1), (2, 1), (4, 1)]


def test_from_config_merges_level_override(tmp_path):
    levels = tmp_path / "levels"
    levels.mkdir()
    (levels / "flat.map").write_text("X    F\nPPPPPP\n", encoding="utf-8")
    (levels / "flat.json").write_text(json.dumps(WALK_ONLY), encoding="utf-8")
    cfg = {"levels_dir": "levels", "currentLevel": "flat", "tile_size": 16, "physics": {"J": 3}}
    (tmp_path / "config.json").write_text(json.dumps(cfg), encoding="utf-8")

    session = LevelSession.from_config(tmp_path / "config.json")
    assert session.level.name == "flat"
    assert session.tile_size == 16
    assert session.physics.J == 3
    assert session.physics.short_jump_cost == 3.0
    assert len(session.path) == 6


FLOATING_MARKERS = ["X        F", "          ", "PPPP   PPP"]


def test_floating_markers_protect_the_platforms_they_settle_on():
    session = LevelSession(
        build_level_from_lines("floating", FLOATING_MARKERS), {"physics": {"J": 2, "M": 4}}
    )
    assert session.spawn == (0, 1)
    assert session.goal == (9, 1)
    cells = protected_cells(session.level, session.graph)
    assert [(r.x, r.y) for r in cells] == [(0, 2), (9, 2)]

    choice = session.suggest_edit("maximize")
    kinds = [c.edit.kind for c in choice.candidates]
    assert EditKind.REMOVE_PLATFORM not in kinds
    assert choice.kind is not EditKind.REMOVE_PLATFORM


def test_load_compiles_once_and_replan_reuses_the_graph(monkeypatch):
    compiled = []
    real_compile = session_module.compile_level_graph

    def counting_compile(grid, physics):
        compiled.append(grid)
        return real_compile(grid, physics)

    monkeypatch.setattr(session_module, "compile_level_graph", counting_compile)
    session = LevelSession(build_level_from_lines("flat", ["X    F", "PPPPPP"]), WALK_ONLY)
    assert len(compiled) == 1
    graph = session.graph

    session._replan()
    assert len(compiled) == 1
    assert session.graph is graph
    assert session.replans == 1
    assert session.path
