"""Game configuration — loads tunable constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then passed (or injected) wherever constants are needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict

import yaml

from fenceserver.models.monster import DEFAULT_ARCHETYPES, MonsterArchetype

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


@dataclass
class WeaponStats:
    """Level-1 stats of one weapon type."""
    damage: float
    cooldown: float
    bullet_speed: float
    pierce: int = 0
    spread: float = 0.04
    tip: float = 22.0


def _default_weapons() -> Dict[str, WeaponStats]:
    return {
        "knife": WeaponStats(damage=10, cooldown=0.35, bullet_speed=520, pierce=0, tip=22),
        "axe": WeaponStats(damage=18, cooldown=0.65, bullet_speed=460, pierce=2, tip=28),
        "spear": WeaponStats(damage=14, cooldown=0.45, bullet_speed=580, pierce=999, tip=34),
        "bow": WeaponStats(damage=8, cooldown=0.55, bullet_speed=780, pierce=1, spread=0.07, tip=28),
    }


@dataclass
class ShopCosts:
    """Gold costs for shop purchases (packs are priced per archetype)."""
    upgrade_weapon: int = 10
    heal: int = 8
    send_boss: int = 60
    send_grenade: int = 15


@dataclass
class GameConfig:
    """All tunable gameplay constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so the server can start even without the file.
    """

    # -- Arena -------------------------------------------------------
    arena_width: float = 1000.0
    arena_height: float = 600.0
    arena_padding: float = 40.0

    # -- Timing ------------------------------------------------------
    tick_rate: int = 60
    wave_time: float = 30.0
    shop_time: float = 18.0
    input_stale_after_s: float = 1.0

    # -- Player ------------------------------------------------------
    player_speed: float = 300.0
    player_size: float = 32.0
    player_max_hp: float = 100.0
    kill_score: int = 15
    contact_range: float = 18.0
    contact_damage: float = 8.0
    pickup_radius: float = 20.0

    # -- Weapons -----------------------------------------------------
    weapons: Dict[str, WeaponStats] = field(default_factory=_default_weapons)
    bullet_lifetime: float = 1.7
    bullet_hit_radius: float = 5.0
    max_weapon_level: int = 5
    upgrade_damage_growth: float = 1.3
    upgrade_cooldown_decay: float = 0.9
    upgrade_speed_growth: float = 0.05
    min_weapon_cooldown: float = 0.15

    # -- Spawner -----------------------------------------------------
    base_target: float = 6.0
    target_scale: float = 1.2
    base_spawn_interval: float = 1.8
    min_spawn_interval: float = 0.45
    spawn_interval_decay: float = 0.035
    first_spawn_delay: float = 0.5
    max_monsters: int = 26
    spawn_warning_time: float = 2.0
    reinforcement_interval: float = 0.6
    reinforcement_delay: float = 1.5
    pack_size: int = 4

    # -- Monsters ----------------------------------------------------
    monster_base_hp: float = 30.0
    monster_hp_scale: float = 1.12
    monster_min_hp: float = 10.0
    monster_base_speed: float = 90.0
    monster_speed_scale: float = 1.06
    monster_min_speed: float = 50.0
    monsters: Dict[str, MonsterArchetype] = field(
        default_factory=lambda: dict(DEFAULT_ARCHETYPES))

    # -- Boss rounds -------------------------------------------------
    boss_round_interval: int = 5
    boss_count: int = 2
    boss_tier_interval: int = 10

    # -- Ranged monsters ---------------------------------------------
    spitter_range: float = 320.0
    spitter_first_cooldown: float = 2.5
    spitter_cooldown_min: float = 1.4
    spitter_cooldown_max: float = 2.4
    enemy_bullet_speed: float = 310.0
    enemy_bullet_damage: float = 6.0
    enemy_bullet_lifetime: float = 2.2
    enemy_bullet_radius: float = 5.0

    # -- Loot --------------------------------------------------------
    gold_drop_chance: float = 0.55
    gold_per_pickup: int = 3
    heart_drop_chance: float = 0.08
    heart_heal: float = 25.0
    potion_drop_chance: float = 0.04
    buff_duration: float = 8.0
    buff_damage_mult: float = 1.5
    buff_attack_speed_mult: float = 1.5

    # -- Shop --------------------------------------------------------
    shop_costs: ShopCosts = field(default_factory=ShopCosts)
    heal_amount: float = 30.0
    max_grenades_per_shop: int = 2

    # -- Grenades ----------------------------------------------------
    grenade_fuse: float = 2.5
    grenade_radius: float = 120.0
    grenade_damage: float = 60.0

    # -- Network -----------------------------------------------------
    ws_host: str = "0.0.0.0"
    ws_port: int = 3000
    ws_ping_interval: int = 30
    ws_ping_timeout: int = 10
    ws_max_message_size: int = 65_536

    def archetype(self, kind: str) -> MonsterArchetype | None:
        """Look up a monster archetype by tag."""
        return self.monsters.get(kind)

    def boss_kind_for_tier(self, tier: int) -> str | None:
        """Archetype tag of the boss with the given tier."""
        for arch in self.monsters.values():
            if arch.boss_tier == tier:
                return arch.kind
        return None

    @property
    def max_boss_tier(self) -> int:
        return max((a.boss_tier for a in self.monsters.values()), default=0)


def _parse_weapons(raw: Any) -> Dict[str, WeaponStats]:
    weapons = _default_weapons()
    if not isinstance(raw, dict):
        return weapons
    known = {f.name for f in fields(WeaponStats)}
    for name, attrs in raw.items():
        if not isinstance(attrs, dict):
            continue
        values = {k: v for k, v in attrs.items() if k in known}
        base = weapons.get(name)
        if base is not None:
            weapons[name] = replace(base, **values)
        elif {"damage", "cooldown", "bullet_speed"} <= values.keys():
            weapons[name] = WeaponStats(**values)
        else:
            log.warning("Weapon %r is missing damage/cooldown/bullet_speed — skipped", name)
    return weapons


def _parse_monsters(raw: Any) -> Dict[str, MonsterArchetype]:
    monsters = dict(DEFAULT_ARCHETYPES)
    if not isinstance(raw, dict):
        return monsters
    known = {f.name for f in fields(MonsterArchetype)} - {"kind"}
    for kind, attrs in raw.items():
        if not isinstance(attrs, dict):
            continue
        values = {k: v for k, v in attrs.items() if k in known}
        base = monsters.get(kind, MonsterArchetype(kind))
        monsters[kind] = replace(base, **values)
    return monsters


def load_game_config(path: str = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s — using defaults", p)
        return GameConfig()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    log.info("Loaded game config from %s (%d keys)", p, len(raw))

    # Nested sections
    costs_raw = raw.pop("shop_costs", None)
    costs = ShopCosts(**{
        k: v for k, v in costs_raw.items() if k in ShopCosts.__dataclass_fields__
    }) if isinstance(costs_raw, dict) else ShopCosts()
    weapons = _parse_weapons(raw.pop("weapons", None))
    monsters = _parse_monsters(raw.pop("monsters", None))

    cfg = GameConfig(shop_costs=costs, weapons=weapons, monsters=monsters, **{
        k: v for k, v in raw.items()
        if k in GameConfig.__dataclass_fields__
    })
    return cfg
