from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from level_loader import find_level_config_path, resolve_level_name
from utils import deep_get, deep_merge

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = "gap"


def load_json_config(path: Path) -> Dict[str, Any]:
    """Read one JSON config document.

    Args:
        path: Path to a base or per-level JSON config.

    Returns:
        The parsed object. A document whose top level is not an object is
        logged and treated as empty.

    Raises:
        FileNotFoundError: If the file does not exist.
        SystemExit: If the JSON cannot be parsed (message names line/column).
    """
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SystemExit(
            f"\nERROR: {path} is not valid JSON "
            f"(line {e.lineno}, col {e.colno}): {e.msg}\n"
            f"Level maps belong in .map files next to the config, not inside it.\n"
        )
    if not isinstance(data, dict):
        logger.warning("config %s is not a JSON object; ignoring it", path)
        return {}
    return data


def load_merged_config(
    cfg_path: Path, level_name: Optional[str] = None
) -> Tuple[str, Dict[str, Any], Path]:
    """Base config with the chosen level's override merged on top.

    The levels directory is taken relative to the config file unless it is
    absolute. Without an explicit `level_name` the config's "currentLevel"
    is used.

    Returns:
        (resolved_level_name, merged_cfg, levels_dir)
    """
    base_cfg = load_json_config(cfg_path)
    levels_dir = Path(deep_get(base_cfg, "levels_dir", "levels"))
    if not levels_dir.is_absolute():
        levels_dir = cfg_path.parent / levels_dir

    name = level_name or str(deep_get(base_cfg, "currentLevel", DEFAULT_LEVEL))
    resolved = resolve_level_name(name, levels_dir)
    override_path = find_level_config_path(levels_dir, resolved)
    override = load_json_config(override_path) if override_path else {}
    if override:
        logger.debug("level %s overrides %s", resolved, sorted(override))
    return resolved, deep_merge(base_cfg, override), levels_dir
