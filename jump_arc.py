"""Jump parabola between two tile-space points.

Tile space has y pointing down, so a jump of apex height J peaks at
``y1 - J``. The curve is ``y = A*x'**2 + B*x' + y1`` with ``x' = x - x1``;
A is positive (opening downward on screen) and B carries the travel
direction so the vertex always sits between start and end.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from utils import sign


@dataclass(frozen=True)
class JumpArc:
    x1: float
    y1: float
    x2: float
    y2: float
    J: float
    A: float
    B: float

    @classmethod
    def between(
        cls, x1: float, y1: float, x2: float, y2: float, J: float
    ) -> Optional["JumpArc"]:
        """Derive the arc, or return None when it is undefined.

        Undefined when the end is more than one jump-height above the start
        (``y2 - y1 < -J``), when there is no horizontal travel, or J <= 0.
        """
        dx = x2 - x1
        dy = y2 - y1
        if J <= 0 or dx == 0 or dy < -J:
            return None
        root = math.sqrt(J) + math.sqrt(J + dy)
        a = (root / dx) ** 2
        b = -2.0 * sign(dx) * math.sqrt(a * J)
        return cls(x1, y1, x2, y2, J, a, b)

    @property
    def dx(self) -> float:
        return self.x2 - self.x1

    @property
    def direction(self) -> int:
        return sign(self.dx)

    def height_at(self, offset: float) -> float:
        """Height (tile y) at horizontal offset x' from the start."""
        return self.A * offset * offset + self.B * offset + self.y1

    def vertex_offset(self) -> float:
        return -self.B / (2.0 * self.A)

    def vertex(self) -> Tuple[float, float]:
        """Apex in absolute tile coordinates."""
        return self.x1 + self.vertex_offset(), self.y1 - self.J

    def x_at(
        self,
        height: float,
        vertical_velocity: float,
        previous: Optional[float] = None,
        apex_tolerance: float = 0.25,
    ) -> float:
        """Inverse of height_at: the offset x' where the arc reaches `height`.

        A negative vertical velocity (moving up) selects the ascending branch,
        a positive one the descending branch. At zero velocity both branches
        meet at the apex; the root nearest `previous` is returned so that the
        followed trajectory stays continuous.

        Heights above the apex by more than `apex_tolerance` tiles have no
        solution and return NaN; smaller overshoots clamp to the apex.
        """
        disc = self.B * self.B - 4.0 * self.A * (self.y1 - height)
        if disc < 0:
            if disc < -4.0 * self.A * apex_tolerance:
                return math.nan
            disc = 0.0
        spread = math.sqrt(disc) / (2.0 * self.A)
        vertex = self.vertex_offset()
        ascending = vertex - self.direction * spread
        descending = vertex + self.direction * spread

        if vertical_velocity < 0:
            return ascending
        if vertical_velocity > 0:
            return descending
        if previous is None:
            return ascending
        if abs(ascending - previous) <= abs(descending - previous):
            return ascending
        return descending

    def arc_length(self) -> float:
        """Closed-form length of the curve between start and end."""

        def primitive(u: float) -> float:
            return (u * math.sqrt(1.0 + u * u) + math.asinh(u)) / 2.0

        u0 = self.B
        u1 = 2.0 * self.A * self.dx + self.B
        return abs(primitive(u1) - primitive(u0)) / (2.0 * self.A)

    def sample(self, steps: int) -> List[Tuple[float, float]]:
        """`steps + 1` evenly spaced points from start to end (inclusive)."""
        steps = max(1, int(steps))
        points = []
        for i in range(steps + 1):
            offset = self.dx * i / steps
            points.append((self.x1 + offset, self.height_at(offset)))
        # pin the endpoint exactly; float drift would otherwise leak into tile lookups
        points[-1] = (self.x2, self.y2)
        return points


def arc_length(x1: float, y1: float, x2: float, y2: float, J: float) -> float:
    """Arc length of the jump between two points; NaN if the arc is undefined."""
    arc = JumpArc.between(x1, y1, x2, y2, J)
    if arc is None:
        return math.nan
    return arc.arc_length()


def arc_vertex(x1: float, y1: float, x2: float, y2: float, J: float) -> Optional[Tuple[float, float]]:
    arc = JumpArc.between(x1, y1, x2, y2, J)
    return arc.vertex() if arc is not None else None
