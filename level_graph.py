from __future__ import annotations

import logging
import math
from typing import Dict, Iterator, Optional

from jump_arc import arc_length
from models import Node, NodeKey, PhysicsConfig
from tiles import TileGrid
from visibility import arc_clear

logger = logging.getLogger(__name__)


class NavGraph:
    """Arena of standable nodes keyed by tile coordinate.

    Adjacency lives on each node as a key->weight mapping; nodes never hold
    references to each other.
    """

    def __init__(self) -> None:
        self.nodes: Dict[NodeKey, Node] = {}

    def __contains__(self, key: object) -> bool:
        return key in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes.values())

    def add_node(self, x: int, y: int) -> Node:
        key = (x, y)
        node = self.nodes.get(key)
        if node is None:
            node = Node(x, y)
            self.nodes[key] = node
        return node

    def add_edge(self, a: NodeKey, b: NodeKey, weight: float) -> bool:
        """Store a->b keeping the minimum weight ever offered.

        Returns True when the stored weight changed.
        """
        node = self.nodes.get(a)
        if node is None or b not in self.nodes or a == b:
            return False
        existing = node.neighbors.get(b)
        if existing is not None and existing <= weight:
            return False
        node.neighbors[b] = weight
        return True

    def weight(self, a: NodeKey, b: NodeKey) -> Optional[float]:
        node = self.nodes.get(a)
        return node.neighbors.get(b) if node is not None else None

    def edge_count(self) -> int:
        return sum(len(n.neighbors) for n in self.nodes.values())


# ----------------------------
# Compilation
# ----------------------------


def compile_level_graph(grid: TileGrid, physics: PhysicsConfig) -> NavGraph:
    """Build the full node/edge set for a grid.

    Always a complete rebuild: a single edit can open or close jumps far
    away from the edited tiles.
    """
    graph = NavGraph()

    # y = -1 holds nodes standing on top-row platforms (open sky above).
    for y in range(-1, grid.height - 1):
        for x in range(len(grid.rows[y + 1])):
            if grid.is_standable(x, y):
                graph.add_node(x, y)

    for node in list(graph.nodes.values()):
        _link_walks(graph, node, physics)
        if not grid.is_traversable(node.x, node.y - 1):
            continue
        _scan_center(graph, grid, node, physics)
        _scan_sides(graph, grid, node, physics)

    logger.debug(
        "compiled level graph: %s nodes, %s edges (J=%s, M=%s)",
        len(graph),
        graph.edge_count(),
        physics.J,
        physics.M,
    )
    return graph


def _link_walks(graph: NavGraph, node: Node, physics: PhysicsConfig) -> None:
    for dx in (-1, 1):
        other = (node.x + dx, node.y)
        if other in graph:
            graph.add_edge(node.key, other, physics.walk_cost)
            graph.add_edge(other, node.key, physics.walk_cost)


def _jump_weight(a: NodeKey, b: NodeKey, flat_cost: float, physics: PhysicsConfig) -> float:
    if physics.jump_cost_mode == "arc_length":
        length = arc_length(a[0], a[1], b[0], b[1], physics.J)
        if not math.isnan(length):
            return length
    return flat_cost


def _try_jump(
    graph: NavGraph,
    grid: TileGrid,
    a: NodeKey,
    b: NodeKey,
    flat_cost: float,
    physics: PhysicsConfig,
) -> None:
    if arc_clear(a, b, grid, physics.J, physics.arc_samples):
        graph.add_edge(a, b, _jump_weight(a, b, flat_cost, physics))


def _scan_center(graph: NavGraph, grid: TileGrid, node: Node, physics: PhysicsConfig) -> None:
    """Short jumps: first node per column inside the flat-jump rectangle."""
    half = physics.M // 2
    top = max(node.y - physics.J, -1)
    bottom = node.y + physics.drop_slack
    for ox in range(-half, half + 1):
        if ox == 0:
            continue
        cx = node.x + ox
        for cy in range(top, bottom + 1):
            if (cx, cy) in graph:
                _try_jump(graph, grid, node.key, (cx, cy), physics.short_jump_cost, physics)
                break


def _scan_sides(graph: NavGraph, grid: TileGrid, node: Node, physics: PhysicsConfig) -> None:
    """Long jumps: scan down from the parabola height at each side offset.

    Left and right are walked together per offset but each side stops at
    its own first hit.
    """
    near = physics.M // 2
    far = int(math.floor(1.5 * physics.M))
    for d in range(near, far + 1):
        y_max = node.y + int(math.floor((d / physics.J) * (d - physics.M)))
        left_done = right_done = False
        for cy in range(max(y_max, -1), grid.height):
            left = (node.x - d, cy)
            right = (node.x + d, cy)
            if not left_done and left in graph:
                left_done = True
                _try_jump(graph, grid, node.key, left, physics.long_jump_cost, physics)
            if not right_done and right in graph:
                right_done = True
                _try_jump(graph, grid, node.key, right, physics.long_jump_cost, physics)
            if left_done and right_done:
                break


# ----------------------------
# Marker resolution
# ----------------------------


def settle_node(graph: NavGraph, grid: TileGrid, x: int, y: int) -> Optional[NodeKey]:
    """Drop a marker straight down to the node it would land on, if any."""
    for cy in range(y, grid.height):
        if (x, cy) in graph:
            return (x, cy)
        if not grid.is_traversable(x, cy):
            return None
    return None


def nearest_node(graph: NavGraph, x: int, y: int, radius: int = 15) -> Optional[NodeKey]:
    """Closest node by square rings of growing radius (ring order is fixed)."""
    if (x, y) in graph:
        return (x, y)
    for r in range(1, radius + 1):
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                if abs(dx) != r and abs(dy) != r:
                    continue
                key = (x + dx, y + dy)
                if key in graph:
                    return key
    return None
