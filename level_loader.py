from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from models import Level, TileLegend
from tiles import TileGrid

logger = logging.getLogger(__name__)


def build_level_from_lines(name: str, lines: List[str], legend: Optional[TileLegend] = None) -> Level:
    """Build a Level (grid, markers, platform blocks) from raw map lines.

    Args:
        name: Level name.
        lines: Map lines; short lines are padded with the empty symbol.
        legend: Tile symbols (defaults apply when omitted).

    Returns:
        A populated Level instance.

    Raises:
        ValueError: If no lines are provided.
    """
    grid = TileGrid.from_lines(lines, legend)
    legend = grid.legend
    level = Level(
        name=name,
        grid=grid,
        width_tiles=grid.width,
        height_tiles=grid.height,
        player_spawn=grid.find_marker(legend.player_spawn),
        agent_spawn=grid.find_marker(legend.agent_spawn),
        goal=grid.find_marker(legend.goal),
        platforms=grid.platforms(),
    )
    logger.debug(
        "level %s: %sx%s, %s platform blocks, goal=%s",
        name,
        level.width_tiles,
        level.height_tiles,
        len(level.platforms),
        level.goal,
    )
    return level


def resolve_level_name(name: str, levels_dir: Path) -> str:
    """Resolve a level name against .map files in root or a level folder (case-insensitive)."""
    if (levels_dir / f"{name}.map").exists():
        return name
    if (levels_dir / name / f"{name}.map").exists():
        return name

    if levels_dir.exists():
        for f in levels_dir.glob("*.map"):
            if f.stem.lower() == name.lower():
                return f.stem
        for entry in levels_dir.iterdir():
            if entry.is_dir() and entry.name.lower() == name.lower():
                # keep actual casing from disk
                return entry.name

    return name


def find_level_config_path(levels_dir: Path, level_name: str) -> Optional[Path]:
    """Return the path to a per-level .json config if it exists."""
    candidates = [
        levels_dir / level_name / f"{level_name}.json",
        levels_dir / level_name / "config.json",
        levels_dir / f"{level_name}.json",
    ]
    for p in candidates:
        if p.exists():
            return p
    return None


def read_level_lines(resolved_name: str, levels_dir: Path) -> List[str]:
    """Read grid lines from a map file, preferring a level folder if present."""
    folder = levels_dir / resolved_name
    candidates = [folder / f"{resolved_name}.map"]
    if folder.is_dir():
        candidates.extend(sorted(folder.glob("*.map")))
    candidates.append(levels_dir / f"{resolved_name}.map")

    for candidate in candidates:
        if candidate.exists():
            return candidate.read_text(encoding="utf-8").splitlines()

    raise FileNotFoundError(
        f"Level '{resolved_name}' not found.\n"
        f"- Looked for {resolved_name}.map inside {folder}\n"
        f"- Looked for file: {levels_dir / f'{resolved_name}.map'}"
    )


def load_level(name: str, levels_dir: Path, legend: Optional[TileLegend] = None) -> Level:
    """Load a level by name from disk."""
    resolved = resolve_level_name(name, levels_dir)
    lines = read_level_lines(resolved, levels_dir)
    if not lines:
        raise ValueError(f"Level '{resolved}' is empty.")
    return build_level_from_lines(resolved, lines, legend)
