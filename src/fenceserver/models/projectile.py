"""Projectile models — player bullets and monster spit.

Projectiles are pure data. Integration, culling and hit resolution live
in engine/combat_service.py.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Bullet:
    """A bullet fired by a player.

    Attributes:
        bid: Unique bullet id.
        owner_id: Player id of the shooter (receives kill credit).
        side: Half of the arena the bullet belongs to.
        x, y: Position.
        vx, vy: Velocity in pixels per second.
        damage: Damage dealt to each monster hit.
        weapon_type: Weapon that fired the bullet (for rendering).
        lifetime: Seconds until the bullet expires.
        pierce: Extra monsters the bullet may hit after the first.
        dead: Marked for removal at the end of the tick.
    """

    bid: int
    owner_id: int
    side: str
    x: float
    y: float
    vx: float
    vy: float
    damage: float
    weapon_type: str
    lifetime: float
    pierce: int = 0
    dead: bool = False


@dataclass
class EnemyBullet:
    """Spit fired by a ranged monster at a player on its own side."""

    eid: int
    side: str
    x: float
    y: float
    vx: float
    vy: float
    damage: float
    lifetime: float
    radius: float = 5.0
    dead: bool = False
