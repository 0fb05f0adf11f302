"""Monster model — archetype table and live monster instances.

Monster behaviour is data-driven: every monster carries a ``kind`` tag
that keys into an archetype table holding its multipliers and flags.
The engine dispatches on the archetype's flags (``ranged``,
``boss_tier``) rather than on subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MonsterArchetype:
    """Static description of one monster kind.

    Attributes:
        kind: Archetype tag (``"slime"``, ``"spitter"``, ``"brute"`` ...).
        hp_mult: Multiplier on the round-scaled base hp.
        speed_mult: Multiplier on the round-scaled base speed.
        radius: Collision radius in pixels.
        spawn_weight: Weight in the random baseline draw (0 = never drawn).
        pack_cost: Gold cost of sending a pack of this kind (0 = not sendable).
        ranged: Whether the monster fires enemy bullets.
        boss_tier: Boss tier (0 for regular monsters).
    """

    kind: str
    hp_mult: float = 1.0
    speed_mult: float = 1.0
    radius: float = 18.0
    spawn_weight: float = 0.0
    pack_cost: int = 0
    ranged: bool = False
    boss_tier: int = 0

    @property
    def is_boss(self) -> bool:
        return self.boss_tier > 0


DEFAULT_ARCHETYPES: dict[str, MonsterArchetype] = {
    "slime": MonsterArchetype("slime", 1.0, 1.0, 18.0, spawn_weight=0.60, pack_cost=12),
    "fast": MonsterArchetype("fast", 0.7, 1.5, 16.0, spawn_weight=0.20, pack_cost=14),
    "tank": MonsterArchetype("tank", 2.2, 0.7, 22.0, spawn_weight=0.15, pack_cost=18),
    "spitter": MonsterArchetype(
        "spitter", 1.1, 0.8, 18.0, spawn_weight=0.05, pack_cost=20, ranged=True,
    ),
    "brute": MonsterArchetype("brute", 10.0, 0.6, 32.0, boss_tier=1),
    "warlord": MonsterArchetype("warlord", 16.0, 0.55, 36.0, boss_tier=2),
    "titan": MonsterArchetype("titan", 24.0, 0.5, 40.0, boss_tier=3),
}


@dataclass
class Monster:
    """A live monster on one half of the arena.

    Attributes:
        mid: Unique monster id.
        side: Half of the arena the monster threatens (never changes).
        kind: Archetype tag.
        x: Horizontal position.
        y: Vertical position.
        hp: Current hit points.
        max_hp: Hit points at spawn.
        speed: Movement speed in pixels per second.
        radius: Collision radius.
        fire_cooldown: Seconds until the next ranged attack (ranged kinds only).
        is_boss: Whether this monster is a boss.
    """

    mid: int
    side: str
    kind: str
    x: float
    y: float
    hp: float
    max_hp: float
    speed: float
    radius: float = 18.0
    fire_cooldown: float | None = None
    is_boss: bool = False

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    def take_damage(self, amount: float) -> None:
        self.hp = max(0.0, self.hp - amount)
