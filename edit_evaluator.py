from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import pygame

from edit_policies import EditPolicy, minimize_cost
from jump_arc import arc_vertex
from level_graph import compile_level_graph
from models import (
    Edit,
    EditCandidate,
    EditChoice,
    EditKind,
    EditorConfig,
    GridRegion,
    NodeKey,
    PhysicsConfig,
)
from pathfinding import SolveResult, solve
from tiles import TileGrid
from utils import clamp_int, round_half_up

logger = logging.getLogger(__name__)


def most_expensive_segment(path: SolveResult) -> Optional[int]:
    """Index of the heaviest edge, ignoring the first and last edges.

    Those are usually short bootstrap/landing steps; when no interior edge
    has a usable weight every edge is considered. NaN weights never win.
    """
    if not path or not path.weights:
        return None
    weights = path.weights
    best = _argmax(weights, range(1, len(weights) - 1))
    if best is None:
        best = _argmax(weights, range(len(weights)))
    return best


def _argmax(weights: Sequence[float], indices: range) -> Optional[int]:
    best: Optional[int] = None
    for i in indices:
        w = weights[i]
        if math.isnan(w):
            continue
        if best is None or w > weights[best]:
            best = i
    return best


# ----------------------------
# Candidate edits
# ----------------------------


def _platform_run(grid: TileGrid, center_x: int, row: int, width: int) -> Optional[GridRegion]:
    if row < 0 or row >= grid.height:
        return None
    line_len = len(grid.rows[row])
    col = max(0, center_x - width // 2)
    end = min(line_len, center_x - width // 2 + width)
    if end <= col:
        return None
    return GridRegion(row, col, grid.legend.platform, end - col)


def platform_edit(
    grid: TileGrid, a: NodeKey, b: NodeKey, physics: PhysicsConfig, editor: EditorConfig
) -> Optional[Edit]:
    """Platform run centred under the vertex of the a->b jump arc."""
    vertex = arc_vertex(a[0], a[1], b[0], b[1], physics.J)
    if vertex is None:
        logger.info("no arc between %s and %s; skipping platform edit", a, b)
        return None
    cx = round_half_up(vertex[0])
    row = round_half_up(vertex[1]) + 1
    region = _platform_run(grid, cx, row, editor.platform_width)
    if region is None:
        logger.info("platform under vertex (%s, %s) falls outside the grid", cx, row)
        return None
    return Edit(EditKind.ADD_PLATFORM, (cx, row), (region,))


def hazard_edit(grid: TileGrid, b: NodeKey) -> Optional[Edit]:
    """Single hazard on the tile an agent stands in at `b`."""
    x, y = b
    if grid.cell(x, y) is None:
        return None
    return Edit(EditKind.ADD_HAZARD, b, (GridRegion(y, x, grid.legend.hazard, 1),))


def removal_edit(
    grid: TileGrid,
    b: NodeKey,
    platforms: Sequence[pygame.Rect],
    protected: Sequence[pygame.Rect],
) -> Optional[Edit]:
    """Clear the platform block under `b` unless it supports a spawn or the goal."""
    x, y = b
    for rect in platforms:
        if not rect.collidepoint(x, y + 1):
            continue
        if rect.collidelist(list(protected)) != -1:
            logger.debug("platform %s is protected", rect)
            return None
        regions = tuple(
            GridRegion(row, rect.x, grid.legend.empty, rect.w)
            for row in range(rect.y, rect.y + rect.h)
        )
        return Edit(EditKind.REMOVE_PLATFORM, (x, y + 1), regions)
    return None


def candidate_edits(
    grid: TileGrid,
    a: NodeKey,
    b: NodeKey,
    physics: PhysicsConfig,
    editor: EditorConfig,
    platforms: Sequence[pygame.Rect],
    protected: Sequence[pygame.Rect],
) -> List[Edit]:
    """Up to three edits around the a->b segment, in fixed order."""
    edits = [platform_edit(grid, a, b, physics, editor), hazard_edit(grid, b)]
    if editor.allow_platform_removal:
        edits.append(removal_edit(grid, b, platforms, protected))
    return [e for e in edits if e is not None]


# ----------------------------
# Application and scoring
# ----------------------------


def apply_edit(grid: TileGrid, edit: Edit) -> bool:
    """Apply every region of an edit, or none of them."""
    trial = grid.copy()
    for region in edit.regions:
        if not trial.update_region(region.row, region.col, region.chars, region.length):
            logger.warning("edit %s rejected at %s", edit.kind.value, region)
            return False
    grid.rows[:] = trial.rows
    return True


def score_edit(
    grid: TileGrid, edit: Edit, start: NodeKey, goal: NodeKey, physics: PhysicsConfig
) -> EditCandidate:
    """Cost of the start->goal route after applying `edit` to a private copy."""
    trial = grid.copy()
    if not apply_edit(trial, edit):
        return EditCandidate(edit, math.inf, False)
    result = solve(compile_level_graph(trial, physics), start, goal)
    logger.debug("edit %s at %s -> cost %s", edit.kind.value, edit.target_cell, result.cost)
    return EditCandidate(edit, result.cost, bool(result))


def default_edit(
    grid: TileGrid, start: NodeKey, goal: NodeKey, physics: PhysicsConfig, editor: EditorConfig
) -> Optional[Edit]:
    """Fixed fallback: a platform under the start->goal arc vertex (or midpoint)."""
    edit = platform_edit(grid, start, goal, physics, editor)
    if edit is not None:
        return edit
    cx = round_half_up((start[0] + goal[0]) / 2)
    row = clamp_int(min(start[1], goal[1]) - physics.J + 1, 0, max(0, grid.height - 1))
    region = _platform_run(grid, cx, row, editor.platform_width)
    if region is None:
        return None
    return Edit(EditKind.ADD_PLATFORM, (cx, row), (region,))


def evaluate_edits(
    grid: TileGrid,
    start: NodeKey,
    goal: NodeKey,
    path: SolveResult,
    physics: PhysicsConfig,
    editor: EditorConfig,
    protected: Sequence[pygame.Rect] = (),
    platforms: Optional[Sequence[pygame.Rect]] = None,
    policy: EditPolicy = minimize_cost,
) -> Optional[EditChoice]:
    """Pick the terrain edit that best serves `policy` for the start->goal route.

    Each candidate is applied to a copy of `grid` (the live grid is never
    touched), the level graph is rebuilt and the route re-solved. Without a
    usable path the fixed default edit is returned instead. None only when
    not even the default edit fits inside the grid.
    """
    index = most_expensive_segment(path)
    if index is None:
        logger.info("no path to evaluate from %s to %s; using default edit", start, goal)
        edit = default_edit(grid, start, goal, physics, editor)
        if edit is None:
            return None
        scored = score_edit(grid, edit, start, goal, physics)
        return EditChoice(edit.kind, edit.target_cell, scored.cost, edit, (scored,), fallback=True)

    a, b = path.nodes[index], path.nodes[index + 1]
    if platforms is None:
        platforms = grid.platforms()
    edits = candidate_edits(grid, a, b, physics, editor, platforms, protected)
    if not edits:
        edit = default_edit(grid, start, goal, physics, editor)
        if edit is None:
            return None
        edits = [edit]

    candidates = tuple(score_edit(grid, e, start, goal, physics) for e in edits)
    chosen = policy(candidates)
    logger.info(
        "segment %s -> %s (w=%s): chose %s at %s, cost %s",
        a,
        b,
        path.weights[index],
        chosen.edit.kind.value,
        chosen.edit.target_cell,
        chosen.cost,
    )
    return EditChoice(chosen.edit.kind, chosen.edit.target_cell, chosen.cost, chosen.edit, candidates)
