from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set, Tuple

import pygame

from models import NodeKey, TileLegend

logger = logging.getLogger(__name__)


class TileGrid:
    """Mutable tile grid stored as a list of fixed-width strings.

    Rows are bounds-checked individually since a level may ship rows of
    differing length. Symbol comparison is case-insensitive.
    """

    def __init__(self, rows: Iterable[str], legend: Optional[TileLegend] = None) -> None:
        self.rows: List[str] = list(rows)
        self.legend = legend or TileLegend()
        self._platform = self.legend.platform.upper()
        self._traversable = self.legend.traversable

    @classmethod
    def from_lines(cls, lines: List[str], legend: Optional[TileLegend] = None) -> "TileGrid":
        """Build a grid padding short lines with the empty symbol."""
        legend = legend or TileLegend()
        if not lines:
            raise ValueError("Level map is empty.")
        width = max(len(line) for line in lines)
        return cls([line.ljust(width, legend.empty) for line in lines], legend)

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def copy(self) -> "TileGrid":
        return TileGrid(list(self.rows), self.legend)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TileGrid):
            return NotImplemented
        return self.rows == other.rows

    def __repr__(self) -> str:
        return f"TileGrid({self.width}x{self.height})"

    # ---------
    # Lookup
    # ---------

    def cell(self, x: int, y: int) -> Optional[str]:
        """Return the symbol at (x, y), or None when outside the row/grid."""
        if y < 0 or y >= len(self.rows):
            return None
        row = self.rows[y]
        if x < 0 or x >= len(row):
            return None
        return row[x]

    def is_platform(self, x: int, y: int) -> bool:
        ch = self.cell(x, y)
        return ch is not None and ch.upper() == self._platform

    def is_traversable(self, x: int, y: int) -> bool:
        """Air an agent may occupy.

        Sky above the grid and the tail of a short row count as empty;
        rows at or below the grid height do not.
        """
        if y < 0:
            return True
        if y >= len(self.rows):
            return False
        ch = self.cell(x, y)
        if ch is None:
            return True
        return ch.upper() in self._traversable

    def is_standable(self, x: int, y: int) -> bool:
        """A node exists at (x, y) iff (x, y+1) is a platform and (x, y) is air."""
        return self.is_platform(x, y + 1) and self.is_traversable(x, y)

    def find_marker(self, symbol: str) -> Optional[NodeKey]:
        target = symbol.upper()
        for y, row in enumerate(self.rows):
            for x, ch in enumerate(row):
                if ch.upper() == target:
                    return (x, y)
        return None

    # ---------
    # Mutation
    # ---------

    def update_region(self, row: int, col: int, new_chars: str, length: int) -> bool:
        """Replace `length` characters of `row` starting at `col`.

        `new_chars` is repeated/truncated to `length`. Regions outside the row
        are rejected (logged, grid untouched) and False is returned.
        """
        if length <= 0 or not new_chars:
            logger.warning("rejected empty region edit at row=%s col=%s", row, col)
            return False
        if row < 0 or row >= len(self.rows):
            logger.warning("rejected region edit: row %s outside grid (height=%s)", row, len(self.rows))
            return False
        line = self.rows[row]
        if col < 0 or col + length > len(line):
            logger.warning(
                "rejected region edit: cols %s..%s outside row %s (len=%s)",
                col,
                col + length - 1,
                row,
                len(line),
            )
            return False

        fill = (new_chars * (length // len(new_chars) + 1))[:length]
        self.rows[row] = line[:col] + fill + line[col + length:]
        logger.debug("region row=%s col=%s len=%s -> %r", row, col, length, fill)
        return True

    # ---------
    # Platforms
    # ---------

    def platforms(self) -> List[pygame.Rect]:
        """Greedy maximal platform rectangles in tile space.

        Each block grows right along its first row, then down while every
        tile of the span is still a platform.
        """
        seen: Set[Tuple[int, int]] = set()
        rects: List[pygame.Rect] = []
        for y, line in enumerate(self.rows):
            for x in range(len(line)):
                if (x, y) in seen or not self.is_platform(x, y):
                    continue
                w = 1
                while self.is_platform(x + w, y) and (x + w, y) not in seen:
                    w += 1
                h = 1
                while all(
                    self.is_platform(x + i, y + h) and (x + i, y + h) not in seen
                    for i in range(w)
                ):
                    h += 1
                for yy in range(y, y + h):
                    for xx in range(x, x + w):
                        seen.add((xx, yy))
                rects.append(pygame.Rect(x, y, w, h))
        return rects
