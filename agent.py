from __future__ import annotations

import logging
import math
from typing import List

import pygame

from models import AgentConfig, NodeKey
from utils import clamp_float

logger = logging.getLogger(__name__)


class AgentBody:
    """Kinematic AABB body the trajectory controller steers.

    Works in pixel space like the rest of the scene. While `ghost` is set
    (arc following) only one-way landings are resolved: the arc was already
    certified clear, and snagging on a corner would knock the body off it.
    """

    def __init__(self, cfg: AgentConfig, spawn: NodeKey, tile_size: int) -> None:
        self.cfg = cfg
        self._tile_size = tile_size
        side = max(1, int(tile_size * cfg.body_scale))
        self.size = pygame.Vector2(side, side)
        self.pos = pygame.Vector2(0, 0)
        self.vel = pygame.Vector2(0, 0)
        self.on_ground = False
        self.ghost = False
        self._rect = pygame.Rect(0, 0, int(self.size.x), int(self.size.y))
        self.place_on_tile(spawn)

    @property
    def rect(self) -> pygame.Rect:
        """Current AABB in world coordinates."""
        self._rect.x = int(self.pos.x)
        self._rect.y = int(self.pos.y)
        self._rect.w = int(self.size.x)
        self._rect.h = int(self.size.y)
        return self._rect

    @property
    def tile_position(self) -> pygame.Vector2:
        """Position in node coordinates.

        x is the body centre column; y is measured at the feet, so a body
        resting on the platform below node (x, y) reports exactly y.
        """
        ts = self._tile_size
        cx = self.pos.x + self.size.x / 2
        feet = self.pos.y + self.size.y
        return pygame.Vector2(cx / ts - 0.5, feet / ts - 1.0)

    @property
    def tile_velocity(self) -> pygame.Vector2:
        return self.vel / self._tile_size

    def place_on_tile(self, key: NodeKey) -> None:
        """Stand the body on the tile below `key`, centred on its column."""
        ts = self._tile_size
        x, y = key
        self.pos.update((x + 0.5) * ts - self.size.x / 2, (y + 1) * ts - self.size.y)
        self.vel.update(0, 0)
        self.on_ground = True
        self.ghost = False

    # ---------
    # Commands
    # ---------

    def apply_horizontal(self, direction: int) -> None:
        self.vel.x = direction * self.cfg.speed

    def apply_jump_impulse(self, apex_tiles: float) -> None:
        """Launch straight up with exactly enough speed to rise `apex_tiles`."""
        v0 = math.sqrt(2.0 * self.cfg.gravity * apex_tiles * self._tile_size)
        self.vel.update(0, -v0)
        self.on_ground = False

    def set_horizontal_target(self, tile_x: float) -> None:
        self.pos.x = (tile_x + 0.5) * self._tile_size - self.size.x / 2
        self.vel.x = 0.0

    # ---------
    # Simulation
    # ---------

    def update(self, dt: float, solids: List[pygame.Rect]) -> None:
        """Advance the body by dt.

        Args:
            dt: Delta time (seconds).
            solids: Solid tile rects in world coordinates.
        """
        dx, dy = self._apply_gravity(dt)
        self._move_and_resolve_x(dx, solids)
        self._move_and_resolve_y(dy, solids)

    def _apply_gravity(self, dt: float) -> tuple[float, float]:
        """Kinematic displacement y(t) = v0*t + 0.5*g*t^2 with terminal velocity."""
        gravity = self.cfg.gravity
        initial_vx = self.vel.x
        initial_vy = self.vel.y
        dx = initial_vx * dt
        dy = initial_vy * dt + 0.5 * gravity * dt * dt
        self.vel.y = clamp_float(initial_vy + gravity * dt, -math.inf, self.cfg.max_fall)
        return dx, dy

    def _move_and_resolve_x(self, dx: float, solids: List[pygame.Rect]) -> None:
        self.pos.x += dx
        if self.ghost:
            return
        r = self.rect
        for s in solids:
            if r.colliderect(s):
                if self.vel.x > 0:
                    r.right = s.left
                elif self.vel.x < 0:
                    r.left = s.right
                self.pos.x = float(r.x)

    def _move_and_resolve_y(self, dy: float, solids: List[pygame.Rect]) -> None:
        prev_bottom = self.pos.y + self.size.y
        self.pos.y += dy
        r = self.rect
        land_slack = self._tile_size * 0.25

        self.on_ground = False
        for s in solids:
            if not r.colliderect(s):
                continue
            if self.ghost and not (self.vel.y > 0 and prev_bottom <= s.top + land_slack):
                continue
            if self.vel.y > 0:
                r.bottom = s.top
                self.on_ground = True
            elif self.vel.y < 0:
                r.top = s.bottom
            self.pos.y = float(r.y)
            self.vel.y = 0.0

        if not self.on_ground and self.vel.y >= 0 and not self.ghost:
            # resting contact: int rects hide sub-pixel sinking into the floor
            below = r.move(0, 1)
            self.on_ground = below.collidelist(solids) != -1
