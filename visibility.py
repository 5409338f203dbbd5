from __future__ import annotations

import math
from typing import Iterator, Tuple

from jump_arc import JumpArc
from models import NodeKey
from tiles import TileGrid
from utils import sign

_EPS = 1e-9


def iter_supercover(x1: float, y1: float, x2: float, y2: float) -> Iterator[Tuple[int, int]]:
    """Yield every tile the segment (x1, y1)-(x2, y2) touches.

    Tiles are centred on integer coordinates (tile t spans [t-0.5, t+0.5)).
    Grid traversal in the style of Amanatides & Woo; when the segment
    crosses exactly through a tile corner both side neighbours are yielded,
    so a diagonal cannot slip between two touching walls. Tiles may repeat.
    """
    gx1, gy1 = x1 + 0.5, y1 + 0.5
    gx2, gy2 = x2 + 0.5, y2 + 0.5
    tx, ty = math.floor(gx1), math.floor(gy1)
    end_x, end_y = math.floor(gx2), math.floor(gy2)
    dx, dy = gx2 - gx1, gy2 - gy1
    step_x, step_y = sign(dx), sign(dy)

    if step_x > 0:
        t_max_x = (tx + 1 - gx1) / dx
    elif step_x < 0:
        t_max_x = (gx1 - tx) / -dx
    else:
        t_max_x = math.inf
    if step_y > 0:
        t_max_y = (ty + 1 - gy1) / dy
    elif step_y < 0:
        t_max_y = (gy1 - ty) / -dy
    else:
        t_max_y = math.inf
    t_delta_x = abs(1.0 / dx) if step_x else math.inf
    t_delta_y = abs(1.0 / dy) if step_y else math.inf

    yield tx, ty
    while (tx, ty) != (end_x, end_y):
        if t_max_x > 1.0 + _EPS and t_max_y > 1.0 + _EPS:
            break
        if abs(t_max_x - t_max_y) <= _EPS:
            # corner crossing
            yield tx + step_x, ty
            yield tx, ty + step_y
            tx += step_x
            ty += step_y
            t_max_x += t_delta_x
            t_max_y += t_delta_y
        elif t_max_x < t_max_y:
            tx += step_x
            t_max_x += t_delta_x
        else:
            ty += step_y
            t_max_y += t_delta_y
        yield tx, ty


def _blocks(grid: TileGrid, tx: int, ty: int) -> bool:
    # Below the grid only non-negative columns block; sky and the sides
    # stay open so arcs may swing outward.
    if ty >= grid.height:
        return tx >= 0
    return not grid.is_traversable(tx, ty)


def segment_clear(x1: float, y1: float, x2: float, y2: float, grid: TileGrid) -> bool:
    """True when every tile touched by the segment is traversable."""
    for tx, ty in iter_supercover(x1, y1, x2, y2):
        if _blocks(grid, tx, ty):
            return False
    return True


def arc_clear(a: NodeKey, b: NodeKey, grid: TileGrid, J: float, steps: int) -> bool:
    """Sample the jump arc a->b and check each chord; undefined arcs are not clear."""
    arc = JumpArc.between(a[0], a[1], b[0], b[1], J)
    if arc is None:
        return False
    points = arc.sample(steps)
    for (px, py), (qx, qy) in zip(points, points[1:]):
        if not segment_clear(px, py, qx, qy, grid):
            return False
    return True
