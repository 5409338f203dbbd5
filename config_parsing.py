from __future__ import annotations

import logging
from typing import Any, Dict

from models import AgentConfig, EditorConfig, PhysicsConfig, TileLegend

logger = logging.getLogger(__name__)


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    raw = cfg.get(name, {})
    return raw if isinstance(raw, dict) else {}


def _as_int(raw: Any, default: int, minimum: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(minimum, value)


def _as_float(raw: Any, default: float, minimum: float = 0.0) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if value != value:  # NaN
        return default
    return max(minimum, value)


def _symbol(raw: Any, default: str) -> str:
    """Single-character tile symbol; anything else keeps the default."""
    if isinstance(raw, str) and len(raw) == 1:
        return raw
    return default


def parse_legend(cfg: Dict[str, Any]) -> TileLegend:
    """Parse tile symbols from the "legend" section.

    Allows config like:
      "legend": { "platform": "#", "hazard": "^" }
    Platform and hazard symbols must differ from every traversable symbol;
    a clashing legend is ignored in favour of the defaults.
    """
    raw = _section(cfg, "legend")
    default = TileLegend()
    legend = TileLegend(
        platform=_symbol(raw.get("platform"), default.platform),
        empty=_symbol(raw.get("empty"), default.empty),
        hazard=_symbol(raw.get("hazard"), default.hazard),
        goal=_symbol(raw.get("goal"), default.goal),
        player_spawn=_symbol(raw.get("player_spawn"), default.player_spawn),
        agent_spawn=_symbol(raw.get("agent_spawn"), default.agent_spawn),
    )
    solid = {legend.platform.upper(), legend.hazard.upper()}
    if len(solid) < 2 or solid & legend.traversable:
        logger.warning("legend symbols overlap (%s); using defaults", legend)
        return default
    return legend


def parse_physics_config(cfg: Dict[str, Any]) -> PhysicsConfig:
    """Parse jump physics and edge costs from the "physics" section.

    Args:
        cfg: Full config dict.

    Returns:
        PhysicsConfig with defaults applied (J and M are at least 1).
    """
    raw = _section(cfg, "physics")
    d = PhysicsConfig()
    mode = str(raw.get("jump_cost_mode", d.jump_cost_mode)).strip().lower()
    if mode not in ("flat", "arc_length"):
        mode = d.jump_cost_mode
    return PhysicsConfig(
        J=_as_int(raw.get("J", d.J), d.J, 1),
        M=_as_int(raw.get("M", d.M), d.M, 1),
        drop_slack=_as_int(raw.get("drop_slack", d.drop_slack), d.drop_slack, 0),
        arc_samples=_as_int(raw.get("arc_samples", d.arc_samples), d.arc_samples, 1),
        walk_cost=_as_float(raw.get("walk_cost", d.walk_cost), d.walk_cost),
        short_jump_cost=_as_float(raw.get("short_jump_cost", d.short_jump_cost), d.short_jump_cost),
        long_jump_cost=_as_float(raw.get("long_jump_cost", d.long_jump_cost), d.long_jump_cost),
        jump_cost_mode=mode,
        apex_tolerance=_as_float(raw.get("apex_tolerance", d.apex_tolerance), d.apex_tolerance),
    )


def parse_agent_config(cfg: Dict[str, Any]) -> AgentConfig:
    """Parse agent body settings from the "agent" section."""
    raw = _section(cfg, "agent")
    d = AgentConfig()
    return AgentConfig(
        speed=_as_float(raw.get("speed", d.speed), d.speed),
        gravity=_as_float(raw.get("gravity", d.gravity), d.gravity, 1.0),
        max_fall=_as_float(raw.get("max_fall", d.max_fall), d.max_fall, 1.0),
        jump_cooldown=_as_float(raw.get("jump_cooldown", d.jump_cooldown), d.jump_cooldown),
        arrive_x=_as_float(raw.get("arrive_x", d.arrive_x), d.arrive_x),
        arrive_y=_as_float(raw.get("arrive_y", d.arrive_y), d.arrive_y),
        body_scale=min(1.0, _as_float(raw.get("body_scale", d.body_scale), d.body_scale, 0.1)),
    )


def parse_editor_config(cfg: Dict[str, Any]) -> EditorConfig:
    """Parse edit evaluator settings from the "editor" section."""
    raw = _section(cfg, "editor")
    d = EditorConfig()
    policy = raw.get("policy", d.policy)
    return EditorConfig(
        platform_width=_as_int(raw.get("platform_width", d.platform_width), d.platform_width, 1),
        policy=str(policy).strip().lower() if isinstance(policy, str) else d.policy,
        allow_platform_removal=bool(raw.get("allow_platform_removal", d.allow_platform_removal)),
    )
