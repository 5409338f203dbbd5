from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from models import EditChoice
from session import LevelSession


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _describe_choice(choice: Optional[EditChoice]) -> str:
    if choice is None:
        return "no edit fits inside the level"
    lines = [
        f"{choice.kind.value} at {choice.target_cell} -> cost {choice.cost}"
        + (" (default edit)" if choice.fallback else "")
    ]
    for c in choice.candidates:
        lines.append(f"  candidate {c.edit.kind.value:<16} {c.edit.target_cell} cost={c.cost}")
    return "\n".join(lines)


def cmd_plan(session: LevelSession, args: argparse.Namespace) -> int:
    path = session.path
    if not path:
        print(f"no path: {path.reason}")
        return 1
    for seg in path.segments():
        print(f"{seg.kind:<5} {seg.start} -> {seg.end}  w={seg.weight:g}")
    print(f"total cost {path.cost:g} over {len(path)} nodes")
    return 0


def cmd_suggest(session: LevelSession, args: argparse.Namespace) -> int:
    choice = session.suggest_edit(args.policy)
    print(_describe_choice(choice))
    if choice is not None and args.apply:
        if not session.apply_edit(choice):
            return 1
        print("\n".join(session.level.grid.rows))
        return cmd_plan(session, args)
    return 0


def cmd_simulate(session: LevelSession, args: argparse.Namespace) -> int:
    reached = session.run_headless(max_ticks=args.ticks, dt=1.0 / args.fps)
    print(
        f"{'reached' if reached else 'did not reach'} goal after {session.ticks} ticks "
        f"({session.replans} re-plans)"
    )
    return 0 if reached else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Plan jump-arc routes through tile levels and evaluate terrain edits."
    )
    parser.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json")
    parser.add_argument("--level", default=None, help="Level name (defaults to currentLevel in config)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Warnings only")

    sub = parser.add_subparsers(dest="command", required=True)
    p_plan = sub.add_parser("plan", help="Print the planned route")
    p_plan.set_defaults(func=cmd_plan)

    p_suggest = sub.add_parser("suggest", help="Evaluate candidate terrain edits")
    p_suggest.add_argument("--policy", default=None, help="minimize | maximize | heuristic")
    p_suggest.add_argument("--apply", action="store_true", help="Apply the chosen edit and re-plan")
    p_suggest.set_defaults(func=cmd_suggest)

    p_sim = sub.add_parser("simulate", help="Run the agent headless until it reaches the goal")
    p_sim.add_argument("--ticks", type=int, default=3000)
    p_sim.add_argument("--fps", type=float, default=60.0)
    p_sim.set_defaults(func=cmd_simulate)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint for running the planner from the command line."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose, args.quiet)
    session = LevelSession.from_config(args.config, args.level)
    return args.func(session, args)


if __name__ == "__main__":
    raise SystemExit(main())
