from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from models import EditCandidate, EditKind, NodeKey
from tiles import TileGrid

logger = logging.getLogger(__name__)

EditPolicy = Callable[[Sequence[EditCandidate]], EditCandidate]


def minimize_cost(candidates: Sequence[EditCandidate]) -> EditCandidate:
    """Edit that makes the route cheapest; earlier candidates win ties."""
    if not candidates:
        raise ValueError("No edit candidates to choose from.")
    return min(candidates, key=lambda c: c.cost)


def maximize_cost(candidates: Sequence[EditCandidate]) -> EditCandidate:
    """Edit that makes the route most expensive (opponent side)."""
    if not candidates:
        raise ValueError("No edit candidates to choose from.")
    return max(candidates, key=lambda c: c.cost)


# ----------------------------
# Heuristic selector
# ----------------------------


@dataclass(frozen=True)
class GameState:
    platform_count: int
    agent_distance: int  # Manhattan distance agent -> goal, tiles
    player_distance: int  # Manhattan distance player -> goal, tiles
    critical_paths: int
    goal_accessibility: float  # 0 (walled in) .. 1 (wide open)


def _manhattan(a: Optional[NodeKey], b: Optional[NodeKey]) -> int:
    if a is None or b is None:
        return 0
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def count_critical_paths(grid: TileGrid) -> int:
    """Narrow ledges: runs of 1-3 standable tiles bounded by non-standable ones."""
    count = 0
    for y in range(grid.height):
        run = 0
        for x in range(grid.width + 1):
            if grid.is_standable(x, y):
                run += 1
                continue
            if 0 < run <= 3:
                count += 1
            run = 0
    return count


def goal_accessibility(grid: TileGrid, goal: Optional[NodeKey]) -> float:
    """Openness of the goal's neighbourhood.

    A goal floating over nothing is treated as easy to reach (0.9); otherwise
    every platform within two tiles makes it harder.
    """
    if goal is None:
        return 0.0
    gx, gy = goal
    if not grid.is_platform(gx, gy + 1):
        return 0.9
    around = sum(
        1
        for dy in range(-2, 3)
        for dx in range(-2, 3)
        if grid.is_platform(gx + dx, gy + dy)
    )
    return 1.0 - min(around / 10.0, 0.9)


def analyze_game_state(
    grid: TileGrid,
    player: Optional[NodeKey],
    agent: Optional[NodeKey],
    goal: Optional[NodeKey],
) -> GameState:
    platform_count = sum(
        1 for y in range(grid.height) for x in range(len(grid.rows[y])) if grid.is_platform(x, y)
    )
    return GameState(
        platform_count=platform_count,
        agent_distance=_manhattan(agent, goal),
        player_distance=_manhattan(player, goal),
        critical_paths=count_critical_paths(grid),
        goal_accessibility=goal_accessibility(grid, goal),
    )


class ItemSelector:
    """Decision tree that ranks edit kinds from a snapshot of the level.

    The selector answers the player's last edit (`player_item`) and the race
    to the goal; the first ranked kind present among the candidates wins.
    """

    def __init__(self, state: GameState, player_item: Optional[EditKind] = None) -> None:
        self.state = state
        self.player_item = player_item

    def preferred_kinds(self) -> List[EditKind]:
        s = self.state
        item = self.player_item
        platform, hazard, remove = EditKind.ADD_PLATFORM, EditKind.ADD_HAZARD, EditKind.REMOVE_PLATFORM

        if s.goal_accessibility < 0.3 and s.agent_distance > 0:
            return [platform, remove, hazard]
        if item is platform and s.player_distance > s.agent_distance:
            return [remove, hazard, platform]
        if item is remove and s.platform_count < 20:
            return [platform, hazard, remove]
        if item is hazard and s.agent_distance > 10:
            return [platform, hazard, remove]
        if item is platform and s.platform_count > 25:
            return [remove, hazard, platform]
        if s.player_distance < s.agent_distance:
            return [hazard, platform, remove]
        if item is remove and s.critical_paths > 0:
            return [hazard, remove, platform]
        if item is hazard and s.player_distance > 15:
            return [remove, hazard, platform]
        if s.goal_accessibility < 0.5:
            return [platform, remove, hazard]
        return [hazard, remove, platform]

    def __call__(self, candidates: Sequence[EditCandidate]) -> EditCandidate:
        if not candidates:
            raise ValueError("No edit candidates to choose from.")
        for kind in self.preferred_kinds():
            for candidate in candidates:
                if candidate.edit.kind is kind:
                    logger.debug("selector picked %s from %s", kind.value, self.state)
                    return candidate
        return candidates[0]


_POLICIES: Dict[str, EditPolicy] = {
    "minimize": minimize_cost,
    "maximize": maximize_cost,
}


def get_policy(name: str, state: Optional[GameState] = None, player_item: Optional[EditKind] = None) -> EditPolicy:
    """Look up a policy by name ("minimize", "maximize" or "heuristic").

    Unknown names fall back to "minimize" with a warning; "heuristic"
    without a game state does the same.
    """
    key = str(name).strip().lower()
    if key == "heuristic":
        if state is not None:
            return ItemSelector(state, player_item)
        logger.warning("heuristic policy needs a game state; using minimize")
        return minimize_cost
    policy = _POLICIES.get(key)
    if policy is None:
        logger.warning("unknown edit policy %r; using minimize", name)
        return minimize_cost
    return policy
