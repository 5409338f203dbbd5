from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterator, List, Optional, Tuple

import pygame

if TYPE_CHECKING:
    from tiles import TileGrid

NodeKey = Tuple[int, int]


@dataclass(frozen=True)
class TileLegend:
    platform: str = "P"
    empty: str = " "
    hazard: str = "S"
    goal: str = "F"
    player_spawn: str = "X"
    agent_spawn: str = "A"

    @property
    def traversable(self) -> FrozenSet[str]:
        """Upper-cased symbols an agent may occupy (never platform or hazard)."""
        return frozenset(
            ch.upper()
            for ch in (self.empty, self.goal, self.player_spawn, self.agent_spawn)
        )


@dataclass(frozen=True)
class PhysicsConfig:
    J: int = 2  # apex height in tiles
    M: int = 4  # flat-jump span in tiles
    drop_slack: int = 4
    arc_samples: int = 12
    walk_cost: float = 1.0
    short_jump_cost: float = 2.0
    long_jump_cost: float = 4.0
    jump_cost_mode: str = "flat"  # flat|arc_length
    apex_tolerance: float = 0.25


@dataclass(frozen=True)
class AgentConfig:
    speed: float = 160.0  # px/s
    gravity: float = 1700.0  # px/s^2
    max_fall: float = 1000.0
    jump_cooldown: float = 0.5  # seconds
    arrive_x: float = 0.15  # tiles
    arrive_y: float = 0.6  # tiles
    body_scale: float = 0.8


@dataclass(frozen=True)
class EditorConfig:
    platform_width: int = 3
    policy: str = "minimize"
    allow_platform_removal: bool = True


@dataclass
class Level:
    name: str
    grid: TileGrid
    width_tiles: int
    height_tiles: int
    player_spawn: Optional[NodeKey]
    agent_spawn: Optional[NodeKey]
    goal: Optional[NodeKey]
    platforms: List[pygame.Rect]


@dataclass
class Node:
    x: int
    y: int
    neighbors: Dict[NodeKey, float] = field(default_factory=dict)

    @property
    def key(self) -> NodeKey:
        return (self.x, self.y)


@dataclass(frozen=True)
class PathSegment:
    start: NodeKey
    end: NodeKey
    weight: float

    @property
    def kind(self) -> str:
        """'walk' for a one-tile step on the same row, 'jump' otherwise."""
        if self.start[1] == self.end[1] and abs(self.end[0] - self.start[0]) == 1:
            return "walk"
        return "jump"


def path_cost(weights: List[float]) -> float:
    """Sum edge weights, skipping NaN/None entries instead of propagating them."""
    total = 0.0
    for w in weights:
        if w is None or (isinstance(w, float) and math.isnan(w)):
            continue
        total += w
    return total


@dataclass(frozen=True)
class Path:
    nodes: Tuple[NodeKey, ...]
    weights: Tuple[float, ...]

    def __post_init__(self) -> None:
        if not self.nodes:
            raise ValueError("A path needs at least one node.")
        if len(self.weights) != len(self.nodes) - 1:
            raise ValueError("Path weights must have one entry per edge.")

    def __len__(self) -> int:
        return len(self.nodes)

    def __bool__(self) -> bool:
        return True

    @property
    def start(self) -> NodeKey:
        return self.nodes[0]

    @property
    def goal(self) -> NodeKey:
        return self.nodes[-1]

    @property
    def cost(self) -> float:
        return path_cost(list(self.weights))

    def segments(self) -> Iterator[PathSegment]:
        for i, w in enumerate(self.weights):
            yield PathSegment(self.nodes[i], self.nodes[i + 1], w)


@dataclass(frozen=True)
class NoPath:
    """Explicit solver failure; falsy so callers can write `if not result`."""

    reason: str

    def __bool__(self) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    @property
    def cost(self) -> float:
        return math.inf


@dataclass(frozen=True)
class TrajectoryCommand:
    horizontal_target: Optional[float] = None  # tile-space x, arc following only
    horizontal_direction: int = 0  # walk impulse direction (-1, 0, 1)
    vertical_impulse_requested: bool = False
    segment_complete: bool = False
    replan_requested: bool = False


class EditKind(str, Enum):
    ADD_PLATFORM = "add_platform"
    ADD_HAZARD = "add_hazard"
    REMOVE_PLATFORM = "remove_platform"


@dataclass(frozen=True)
class GridRegion:
    """One `update_region` call: `length` cells of `row` from `col`."""

    row: int
    col: int
    chars: str
    length: int


@dataclass(frozen=True)
class Edit:
    kind: EditKind
    target_cell: NodeKey
    regions: Tuple[GridRegion, ...]


@dataclass(frozen=True)
class EditCandidate:
    edit: Edit
    cost: float
    path_found: bool


@dataclass(frozen=True)
class EditChoice:
    kind: EditKind
    target_cell: NodeKey
    cost: float
    edit: Edit
    candidates: Tuple[EditCandidate, ...] = ()
    fallback: bool = False
