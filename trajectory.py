from __future__ import annotations

import logging
import math
from typing import Optional

import pygame

from jump_arc import JumpArc
from models import AgentConfig, PathSegment, PhysicsConfig, TrajectoryCommand
from utils import clamp_float, sign

logger = logging.getLogger(__name__)


class TrajectoryController:
    """Drives an agent along one path segment per call.

    Walk segments become a horizontal direction for the body. Jump segments
    request a single vertical impulse, then each tick convert the agent's
    height back into a horizontal position on the precomputed arc, so the
    body traces the planned parabola instead of free ballistic motion.

    All state is explicit: the segment being followed, its launch/airborne
    flags, the last arc offset and the cooldown timer. A repeated call with
    dt == 0 does not advance any timer.
    """

    def __init__(self, physics: PhysicsConfig, cfg: AgentConfig) -> None:
        self.physics = physics
        self.cfg = cfg
        self.cooldown = 0.0
        self._segment: Optional[PathSegment] = None
        self._arc: Optional[JumpArc] = None
        self._launched = False
        self._airborne = False
        self._following = False
        self._last_offset: Optional[float] = None

    def reset(self) -> None:
        """Forget the current segment (used after a re-plan)."""
        self._segment = None
        self._arc = None
        self._launched = False
        self._airborne = False
        self._following = False
        self._last_offset = None

    @property
    def following_arc(self) -> bool:
        return self._following

    def at_target(self, position: pygame.Vector2, segment: PathSegment) -> bool:
        ex, ey = segment.end
        return abs(position.x - ex) < self.cfg.arrive_x and abs(position.y - ey) < self.cfg.arrive_y

    def step(
        self,
        position: pygame.Vector2,
        velocity: pygame.Vector2,
        on_ground: bool,
        segment: PathSegment,
        dt: float,
    ) -> TrajectoryCommand:
        """Advance one tick.

        Args:
            position: Agent position in node coordinates (feet on the floor row).
            velocity: Agent velocity (only signs are used).
            on_ground: Whether the body currently rests on something.
            segment: The path segment being traversed.
            dt: Tick length in seconds.
        """
        if dt > 0:
            self.cooldown = max(0.0, self.cooldown - dt)
        if segment != self._segment:
            self._begin(segment)

        if segment.kind == "walk":
            return self._step_walk(position, segment)
        return self._step_jump(position, velocity, on_ground, segment)

    # ----------------------------
    # Internals
    # ----------------------------

    def _begin(self, segment: PathSegment) -> None:
        self.reset()
        self._segment = segment
        if segment.kind == "jump":
            sx, sy = segment.start
            ex, ey = segment.end
            self._arc = JumpArc.between(sx, sy, ex, ey, self.physics.J)
            if self._arc is None:
                logger.warning("segment %s -> %s has no jump arc", segment.start, segment.end)

    def _step_walk(self, position: pygame.Vector2, segment: PathSegment) -> TrajectoryCommand:
        if self.at_target(position, segment):
            return TrajectoryCommand(segment_complete=True)
        dx = segment.end[0] - position.x
        direction = sign(dx) if abs(dx) >= self.cfg.arrive_x else 0
        return TrajectoryCommand(horizontal_direction=direction)

    def _step_jump(
        self,
        position: pygame.Vector2,
        velocity: pygame.Vector2,
        on_ground: bool,
        segment: PathSegment,
    ) -> TrajectoryCommand:
        arc = self._arc
        if arc is None:
            return TrajectoryCommand(replan_requested=True)

        if not self._launched:
            if on_ground and self.cooldown <= 0:
                self._launched = True
                self._following = True
                self._last_offset = 0.0
                logger.debug("jump %s -> %s", segment.start, segment.end)
                return TrajectoryCommand(horizontal_target=arc.x1, vertical_impulse_requested=True)
            return TrajectoryCommand()

        if not on_ground:
            self._airborne = True
        elif self._airborne:
            self._following = False
            if self.at_target(position, segment):
                self.cooldown = self.cfg.jump_cooldown
                return TrajectoryCommand(segment_complete=True)
            logger.info("landed off target at (%.2f, %.2f), expected %s", position.x, position.y, segment.end)
            return TrajectoryCommand(replan_requested=True)
        else:
            # impulse issued, body has not left the ground yet
            return TrajectoryCommand(horizontal_target=arc.x1)

        if not self._following:
            return TrajectoryCommand()

        offset = arc.x_at(position.y, velocity.y, self._last_offset, self.physics.apex_tolerance)
        if math.isnan(offset):
            logger.debug("arc following ended above apex at y=%.2f", position.y)
            self._following = False
            return TrajectoryCommand()
        lo, hi = sorted((0.0, arc.dx))
        offset = clamp_float(offset, lo, hi)
        self._last_offset = offset
        return TrajectoryCommand(horizontal_target=arc.x1 + offset)
