"""Player model — one of the two arena defenders.

Players are pure data plus a few invariant-preserving mutators
(damage, heal, weapon stats). Movement, aiming and firing are driven
by engine/combat_service.py.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from fenceserver.util.constants import SIDE_LEFT


@dataclass
class Buff:
    """Time-limited damage / attack-speed boost from a potion."""

    damage_mult: float
    attack_speed_mult: float
    remaining: float


@dataclass
class Player:
    """A player defending one half of the arena.

    Attributes:
        pid: Player slot (1 or 2).
        side: ``"left"`` or ``"right"``; fixed for the match.
        x: Horizontal centre position.
        y: Vertical centre position.
        hp: Current hit points, kept within [0, max_hp].
        max_hp: Maximum hit points.
        gold: Currency balance, never negative.
        score: Kill score.
        monsters_killed: Kill counter.

        weapon_type: Chosen weapon, None until chosen in WEAPON_SELECT.
        weapon_level: Upgrade level (1 .. max level).
        weapon_damage: Damage per bullet at the current level.
        weapon_cooldown: Seconds between shots at the current level.
        bullet_speed: Bullet speed at the current level.
        weapon_timer: Seconds until the next shot is allowed.

        aim_dx: Aim unit vector, x component.
        aim_dy: Aim unit vector, y component.
        buff: Active potion buff, if any.
        grenades_bought: Grenades bought during the current shop phase.
    """

    pid: int
    side: str
    x: float = 0.0
    y: float = 0.0
    width: float = 32.0
    height: float = 32.0
    hp: float = 100.0
    max_hp: float = 100.0
    gold: int = 0
    score: int = 0
    monsters_killed: int = 0

    weapon_type: str | None = None
    weapon_level: int = 1
    weapon_damage: float = 0.0
    weapon_cooldown: float = 0.0
    bullet_speed: float = 0.0
    weapon_timer: float = 0.0

    aim_dx: float = 0.0
    aim_dy: float = 0.0
    buff: Buff | None = None
    grenades_bought: int = 0

    def __post_init__(self) -> None:
        if self.aim_dx == 0.0 and self.aim_dy == 0.0:
            self.reset_aim()

    # -- Derived properties ----------------------------------------------

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    @property
    def has_chosen_weapon(self) -> bool:
        return self.weapon_type is not None

    @property
    def damage_mult(self) -> float:
        return self.buff.damage_mult if self.buff else 1.0

    @property
    def attack_speed_mult(self) -> float:
        return self.buff.attack_speed_mult if self.buff else 1.0

    @property
    def can_shoot(self) -> bool:
        return self.is_alive and self.has_chosen_weapon and self.weapon_timer <= 0

    # -- Mutators --------------------------------------------------------

    def reset_aim(self) -> None:
        """Point the aim toward the fence."""
        self.aim_dx = 1.0 if self.side == SIDE_LEFT else -1.0
        self.aim_dy = 0.0

    def aim_at(self, tx: float, ty: float) -> None:
        dx = tx - self.x
        dy = ty - self.y
        length = math.hypot(dx, dy)
        if length > 1e-4:
            self.aim_dx = dx / length
            self.aim_dy = dy / length

    def take_damage(self, amount: float) -> None:
        self.hp = max(0.0, self.hp - amount)

    def heal(self, amount: float) -> None:
        self.hp = min(self.max_hp, max(0.0, self.hp + amount))

    def clear_weapon(self) -> None:
        """Forget the weapon choice (used on disconnect during selection)."""
        self.weapon_type = None
        self.weapon_level = 1
        self.weapon_damage = 0.0
        self.weapon_cooldown = 0.0
        self.bullet_speed = 0.0
        self.weapon_timer = 0.0

    def grant_buff(self, damage_mult: float, attack_speed_mult: float, duration: float) -> None:
        """Start or refresh the potion buff."""
        self.buff = Buff(damage_mult=damage_mult, attack_speed_mult=attack_speed_mult,
                         remaining=duration)

    def tick_timers(self, dt: float) -> None:
        """Count down weapon and buff timers."""
        if self.weapon_timer > 0:
            self.weapon_timer -= dt
        if self.buff is not None:
            self.buff.remaining -= dt
            if self.buff.remaining <= 0:
                self.buff = None
