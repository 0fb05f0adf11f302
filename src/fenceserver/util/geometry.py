"""Geometry helpers — distances, normalisation and arena-half bounds.

The arena is split by a vertical fence at ``arena_width / 2``. Every
player and monster is confined to its own half, inset by the arena
padding plus the entity's own half-extent.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from fenceserver.util.constants import SIDE_LEFT

if TYPE_CHECKING:
    from fenceserver.loaders.game_config_loader import GameConfig


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp *value* to the inclusive range [minimum, maximum]."""
    return max(minimum, min(maximum, value))


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(bx - ax, by - ay)


def normalize(dx: float, dy: float) -> tuple[float, float]:
    """Return the unit vector of (dx, dy), or (0, 0) for a zero vector."""
    length = math.hypot(dx, dy)
    if length == 0:
        return 0.0, 0.0
    return dx / length, dy / length


def fence_x(config: GameConfig) -> float:
    return config.arena_width / 2.0


def half_bounds(
    config: GameConfig, side: str, half_w: float, half_h: float | None = None,
) -> tuple[float, float, float, float]:
    """Bounding box (min_x, max_x, min_y, max_y) for an entity on *side*.

    Args:
        config: Game configuration (arena size, padding).
        side: ``"left"`` or ``"right"``.
        half_w: Half of the entity's width (or its radius).
        half_h: Half of the entity's height; defaults to *half_w*.
    """
    if half_h is None:
        half_h = half_w
    pad = config.arena_padding
    fence = fence_x(config)
    if side == SIDE_LEFT:
        min_x = pad + half_w
        max_x = fence - pad - half_w
    else:
        min_x = fence + pad + half_w
        max_x = config.arena_width - pad - half_w
    min_y = pad + half_h
    max_y = config.arena_height - pad - half_h
    return min_x, max_x, min_y, max_y


def clamp_to_half(
    config: GameConfig, side: str, x: float, y: float,
    half_w: float, half_h: float | None = None,
) -> tuple[float, float]:
    """Clamp a position into *side*'s padded arena half."""
    min_x, max_x, min_y, max_y = half_bounds(config, side, half_w, half_h)
    return clamp(x, min_x, max_x), clamp(y, min_y, max_y)


def in_arena_margin(config: GameConfig, x: float, y: float, margin: float) -> bool:
    """Whether (x, y) lies inside the arena grown by *margin* on every edge."""
    return (
        -margin <= x <= config.arena_width + margin
        and -margin <= y <= config.arena_height + margin
    )
