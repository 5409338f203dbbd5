from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pygame

from agent import AgentBody
from config_io import load_merged_config
from config_parsing import (
    parse_agent_config,
    parse_editor_config,
    parse_legend,
    parse_physics_config,
)
from edit_evaluator import apply_edit, evaluate_edits
from edit_policies import analyze_game_state, get_policy
from level_graph import NavGraph, compile_level_graph, nearest_node, settle_node
from level_loader import load_level
from models import EditChoice, EditKind, Level, NodeKey, NoPath, PathSegment
from pathfinding import SolveResult, solve
from trajectory import TrajectoryController
from utils import round_half_up

logger = logging.getLogger(__name__)


def protected_cells(level: Level, graph: Optional[NavGraph] = None) -> List[pygame.Rect]:
    """1x1 tile rects under the spawns and goal; platforms there must stay.

    With a graph, each marker is first settled onto the node it rests on so
    a marker floating above its platform still protects that platform. The
    raw marker cell is used when it does not settle.
    """
    cells = []
    for marker in (level.player_spawn, level.agent_spawn, level.goal):
        if marker is None:
            continue
        settled = settle_node(graph, level.grid, *marker) if graph is not None else None
        x, y = settled or marker
        cells.append(pygame.Rect(x, y + 1, 1, 1))
    return cells


class LevelSession:
    """Scene logic for one level: plan once, follow the path, edit, re-plan.

    The graph is compiled only on load and after an applied edit. A re-plan
    or respawn re-solves the existing graph. Nothing is rebuilt per frame.
    """

    def __init__(self, level: Level, cfg: Optional[Dict[str, Any]] = None) -> None:
        cfg = cfg or {}
        self.cfg = cfg
        self.level = level
        self.physics = parse_physics_config(cfg)
        self.agent_cfg = parse_agent_config(cfg)
        self.editor = parse_editor_config(cfg)
        self.tile_size = max(1, int(cfg.get("tile_size", 32)))

        self.path: SolveResult = NoPath("start-missing")
        self.segments: List[PathSegment] = []
        self.segment_index = 0
        self.reached_goal = False
        self.replans = 0
        self.ticks = 0
        self.last_player_item: Optional[EditKind] = None

        self.controller = TrajectoryController(self.physics, self.agent_cfg)
        self.graph = NavGraph()
        self.goal: Optional[NodeKey] = None
        self.solids: List[pygame.Rect] = []
        self._compile()
        self.spawn = self._spawn_node()
        self.body = AgentBody(self.agent_cfg, self.spawn or self._spawn_marker() or (0, 0), self.tile_size)
        self._solve(self.spawn)

    @classmethod
    def from_config(cls, cfg_path: Path, level_name: Optional[str] = None) -> "LevelSession":
        """Load the config, the level it names and any per-level override."""
        resolved, cfg, levels_dir = load_merged_config(cfg_path, level_name)
        level = load_level(resolved, levels_dir, parse_legend(cfg))
        return cls(level, cfg)

    # ----------------------------
    # Planning
    # ----------------------------

    def _spawn_marker(self) -> Optional[NodeKey]:
        return self.level.agent_spawn or self.level.player_spawn

    def _spawn_node(self) -> Optional[NodeKey]:
        marker = self._spawn_marker()
        if marker is None:
            return None
        return settle_node(self.graph, self.level.grid, *marker)

    def _goal_node(self) -> Optional[NodeKey]:
        if self.level.goal is None:
            return None
        return settle_node(self.graph, self.level.grid, *self.level.goal)

    def current_node(self) -> Optional[NodeKey]:
        """Node closest to the body's current tile position."""
        pos = self.body.tile_position
        return nearest_node(self.graph, round_half_up(pos.x), round_half_up(pos.y))

    def _rebuild_solids(self) -> None:
        ts = self.tile_size
        self.level.platforms = self.level.grid.platforms()
        self.solids = [pygame.Rect(r.x * ts, r.y * ts, r.w * ts, r.h * ts) for r in self.level.platforms]

    def recompute(self, start: Optional[NodeKey] = None) -> SolveResult:
        """Recompile the graph and solve from `start` (default: the agent's node)."""
        self._compile()
        return self._solve(start)

    def _compile(self) -> None:
        self._rebuild_solids()
        self.graph = compile_level_graph(self.level.grid, self.physics)
        self.goal = self._goal_node()

    def _solve(self, start: Optional[NodeKey]) -> SolveResult:
        if start is None or start not in self.graph:
            start = self.current_node()

        if start is None:
            self.path = NoPath("start-missing")
        elif self.goal is None:
            self.path = NoPath("goal-missing")
        else:
            self.path = solve(self.graph, start, self.goal)

        self.segments = list(self.path.segments()) if self.path else []
        self.segment_index = 0
        self.reached_goal = bool(self.path) and not self.segments
        self.controller.reset()
        logger.info(
            "plan for %s from %s: %s nodes, cost %s",
            self.level.name,
            start,
            len(self.path),
            self.path.cost,
        )
        return self.path

    @property
    def current_segment(self) -> Optional[PathSegment]:
        if self.segment_index < len(self.segments):
            return self.segments[self.segment_index]
        return None

    # ----------------------------
    # Edits
    # ----------------------------

    def suggest_edit(self, policy_name: Optional[str] = None) -> Optional[EditChoice]:
        """Evaluate terrain edits against the current route without touching the grid."""
        start = self.current_node() or self.spawn
        if start is None or self.goal is None:
            logger.info("no start or goal node; nothing to evaluate")
            return None
        path = self.path if self.path and self.path.start == start else solve(self.graph, start, self.goal)
        state = analyze_game_state(self.level.grid, self.level.player_spawn, start, self.goal)
        policy = get_policy(policy_name or self.editor.policy, state, self.last_player_item)
        return evaluate_edits(
            self.level.grid,
            start,
            self.goal,
            path,
            self.physics,
            self.editor,
            protected=protected_cells(self.level, self.graph),
            platforms=self.level.platforms,
            policy=policy,
        )

    def apply_edit(self, choice: EditChoice) -> bool:
        """Apply a chosen edit to the live grid and re-plan from the agent's node."""
        if not apply_edit(self.level.grid, choice.edit):
            return False
        self.last_player_item = choice.kind
        self.body.ghost = False
        self.recompute(self.current_node())
        return True

    # ----------------------------
    # Simulation
    # ----------------------------

    def _is_below_death_line(self) -> bool:
        death_y = self.level.height_tiles * self.tile_size + self.tile_size * 2
        return self.body.rect.top > death_y

    def _respawn(self) -> None:
        logger.info("agent fell out of the level; respawning at %s", self.spawn)
        if self.spawn is not None:
            self.body.place_on_tile(self.spawn)
        self._solve(self.spawn)

    def _replan(self) -> None:
        self.replans += 1
        self.body.ghost = False
        self._solve(self.current_node())

    def update(self, dt: float) -> None:
        """Advance one tick: controller first, then the body."""
        self.ticks += 1
        segment = self.current_segment
        if segment is None:
            self.body.apply_horizontal(0)
            self.body.update(dt, self.solids)
            if self._is_below_death_line():
                self._respawn()
            return

        cmd = self.controller.step(
            self.body.tile_position,
            self.body.tile_velocity,
            self.body.on_ground,
            segment,
            dt,
        )
        if cmd.horizontal_target is not None:
            self.body.set_horizontal_target(cmd.horizontal_target)
        else:
            self.body.apply_horizontal(cmd.horizontal_direction)
        if cmd.vertical_impulse_requested:
            self.body.ghost = True
            self.body.apply_jump_impulse(self.physics.J)

        if cmd.segment_complete:
            self.body.ghost = False
            self.segment_index += 1
            if self.segment_index >= len(self.segments):
                self.reached_goal = True
                logger.info("agent reached goal %s after %s ticks", self.goal, self.ticks)
        elif cmd.replan_requested:
            self._replan()

        self.body.update(dt, self.solids)
        if self._is_below_death_line():
            self._respawn()

    def run_headless(self, max_ticks: int = 3000, dt: float = 1.0 / 60.0) -> bool:
        """Step until the goal is reached, the plan fails, or max_ticks elapse."""
        for _ in range(max_ticks):
            if self.reached_goal:
                break
            if not self.path:
                logger.info("headless run stopped: %s", getattr(self.path, "reason", "no path"))
                break
            self.update(dt)
        return self.reached_goal
