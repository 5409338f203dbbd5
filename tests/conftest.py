from __future__ import annotations

from typing import List

import pytest

from models import AgentConfig, EditorConfig, PhysicsConfig
from tiles import TileGrid

GAP_LEVEL: List[str] = [
    "              ",
    "              ",
    "              ",
    "X            F",
    "PPPP      PPPP",
    "              ",
]

NARROW_GAP_LEVEL: List[str] = [
    "           ",
    "           ",
    "X         F",
    "PPPP   PPPP",
]


@pytest.fixture
def physics() -> PhysicsConfig:
    return PhysicsConfig(J=2, M=4, drop_slack=4, arc_samples=12)


@pytest.fixture
def agent_cfg() -> AgentConfig:
    return AgentConfig()


@pytest.fixture
def editor() -> EditorConfig:
    return EditorConfig(platform_width=3)


@pytest.fixture
def gap_grid() -> TileGrid:
    return TileGrid.from_lines(GAP_LEVEL)


@pytest.fixture
def narrow_gap_grid() -> TileGrid:
    return TileGrid.from_lines(NARROW_GAP_LEVEL)
