from __future__ import annotations

import heapq
import logging
import math
from typing import Dict, List, Optional, Set, Tuple, Union

from level_graph import NavGraph
from models import NodeKey, NoPath, Path

logger = logging.getLogger(__name__)

SolveResult = Union[Path, NoPath]


def solve(graph: NavGraph, start: NodeKey, goal: NodeKey) -> SolveResult:
    """Dijkstra from start to goal over the compiled graph.

    Plain Dijkstra rather than A*: jump weights are tunable and may fall
    below the Manhattan distance, which would make that heuristic
    inadmissible. The frontier is ordered by (distance, key) so ties break
    the same way on every run.

    Returns a Path (nodes start->goal plus the weights actually used) or a
    NoPath value; it never raises for unreachable or missing endpoints.
    """
    if start not in graph:
        logger.info("no path: start %s is not a node", start)
        return NoPath("start-missing")
    if goal not in graph:
        logger.info("no path: goal %s is not a node", goal)
        return NoPath("goal-missing")

    dist: Dict[NodeKey, float] = {start: 0.0}
    previous: Dict[NodeKey, Optional[NodeKey]] = {start: None}
    visited: Set[NodeKey] = set()
    frontier: List[Tuple[float, NodeKey]] = [(0.0, start)]

    while frontier:
        d, key = heapq.heappop(frontier)
        if key in visited:
            continue
        visited.add(key)
        if key == goal:
            return _reconstruct(graph, previous, goal)

        for neighbor, weight in graph.nodes[key].neighbors.items():
            if neighbor in visited:
                continue
            alt = d + weight
            if alt < dist.get(neighbor, math.inf):
                dist[neighbor] = alt
                previous[neighbor] = key
                heapq.heappush(frontier, (alt, neighbor))

    logger.info("no path: %s unreachable from %s", goal, start)
    return NoPath("unreachable")


def _reconstruct(
    graph: NavGraph, previous: Dict[NodeKey, Optional[NodeKey]], goal: NodeKey
) -> Path:
    nodes: List[NodeKey] = [goal]
    cur = previous[goal]
    while cur is not None:
        nodes.append(cur)
        cur = previous[cur]
    nodes.reverse()

    weights = [graph.nodes[a].neighbors[b] for a, b in zip(nodes, nodes[1:])]
    logger.debug("path %s -> %s: %s nodes, cost %.2f", nodes[0], goal, len(nodes), sum(weights))
    return Path(tuple(nodes), tuple(weights))
