"""Match state model — data container for one running match.

The MatchState holds all mutable state of the simulation. Business
logic is in engine/game_core.py and the services it drives.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from fenceserver.models.grenade import Grenade
from fenceserver.models.monster import Monster
from fenceserver.models.pickup import BuffPotion, GoldDrop, HeartPickup
from fenceserver.models.player import Player
from fenceserver.models.projectile import Bullet, EnemyBullet
from fenceserver.models.spawn_warning import SpawnWarning
from fenceserver.util.constants import SIDES


class Phase(Enum):
    """Phases of a match."""

    WEAPON_SELECT = "WEAPON_SELECT"
    PLAYING = "PLAYING"
    SHOP = "SHOP"
    GAME_OVER = "GAME_OVER"


@dataclass
class SideSpawnState:
    """Spawner bookkeeping and shop queues for one half of the arena.

    Queues hold what the *opponent* bought for this side; they are
    consumed into ``reinforcement_plan`` when the next wave starts.

    Attributes:
        baseline_target: Baseline monsters to spawn this wave.
        baseline_spawned: Baseline warnings emitted so far this wave.
        baseline_kind: Forced archetype for the baseline (boss rounds), or None.
        spawn_cooldown: Seconds until the next baseline emission.
        reinforcement_plan: Flattened monster kinds still to emit this wave.
        reinforcement_cooldown: Seconds until the next reinforcement emission.
        queued_packs: Packs per kind bought for the next wave.
        queued_bosses: Bosses bought for the next wave.
        queued_grenades: Grenades bought for the next wave, by buyer id.
        ready: Whether this side's player signalled ready in the shop.
    """

    baseline_target: int = 0
    baseline_spawned: int = 0
    baseline_kind: str | None = None
    spawn_cooldown: float = 0.0
    reinforcement_plan: list[str] = field(default_factory=list)
    reinforcement_cooldown: float = 0.0
    queued_packs: Counter = field(default_factory=Counter)
    queued_bosses: int = 0
    queued_grenades: list[int] = field(default_factory=list)
    ready: bool = False


@dataclass
class MatchState:
    """Mutable state container for a two-player match.

    Attributes:
        players: Both players keyed by id (1 = left, 2 = right).
        phase: Current match phase.
        round: Current round number (1-based).
        wave_left: Remaining wave time.
        shop_left: Remaining shop time.
        winner: ``"left"``, ``"right"``, ``"draw"`` or None.
        spawn_interval: Baseline spawn cadence for the current wave.
        boss_round: Whether the current wave is a boss round.
        sides: Spawner state per side.

        monsters, bullets, enemy_bullets, grenades, gold_drops, hearts,
        potions, spawn_warnings: Entity collections.
    """

    players: dict[int, Player]
    phase: Phase = Phase.WEAPON_SELECT
    round: int = 1
    wave_left: float = 0.0
    shop_left: float = 0.0
    winner: str | None = None
    spawn_interval: float = 0.0
    boss_round: bool = False
    sides: dict[str, SideSpawnState] = field(
        default_factory=lambda: {side: SideSpawnState() for side in SIDES})

    monsters: list[Monster] = field(default_factory=list)
    bullets: list[Bullet] = field(default_factory=list)
    enemy_bullets: list[EnemyBullet] = field(default_factory=list)
    grenades: list[Grenade] = field(default_factory=list)
    gold_drops: list[GoldDrop] = field(default_factory=list)
    hearts: list[HeartPickup] = field(default_factory=list)
    potions: list[BuffPotion] = field(default_factory=list)
    spawn_warnings: list[SpawnWarning] = field(default_factory=list)

    _id_counters: Counter = field(default_factory=Counter, repr=False)

    def next_id(self, collection: str) -> int:
        """Next monotonically increasing id for *collection* (starts at 1)."""
        self._id_counters[collection] += 1
        return self._id_counters[collection]

    def clear_entities(self) -> None:
        """Drop every entity collection (wave start)."""
        self.monsters.clear()
        self.bullets.clear()
        self.enemy_bullets.clear()
        self.grenades.clear()
        self.gold_drops.clear()
        self.hearts.clear()
        self.potions.clear()
        self.spawn_warnings.clear()

    @property
    def pending_monster_count(self) -> int:
        """Live monsters plus telegraphed spawns (for the monster cap)."""
        return sum(1 for m in self.monsters if m.is_alive) + len(self.spawn_warnings)
