"""Grenade model — a delayed area hazard bought in the shop.

A grenade is bought by one player and deployed on the opponent's half
at the start of the next wave. It explodes once when its fuse runs out.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Grenade:
    """An armed grenade on one half of the arena.

    Attributes:
        gid: Unique grenade id.
        side: Half of the arena the blast affects.
        owner_id: Player who bought it.
        x, y: Blast centre.
        fuse: Seconds until detonation.
        radius: Blast radius.
        damage: Damage at the blast centre (linear falloff to 0 at radius).
        exploded: Set once detonated; swept at the end of the tick.
    """

    gid: int
    side: str
    owner_id: int
    x: float
    y: float
    fuse: float
    radius: float
    damage: float
    exploded: bool = False

    def damage_at(self, distance: float) -> float:
        """Blast damage at *distance* from the centre (0 outside the radius)."""
        if distance >= self.radius or self.radius <= 0:
            return 0.0
        return self.damage * (1.0 - distance / self.radius)
