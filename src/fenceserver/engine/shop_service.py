"""Shop service — weapons, healing and sending trouble to the opponent.

All purchases follow the same rule: the action is applied only if the
player can afford it at that moment; otherwise nothing changes. No
purchase ever raises or leaves a negative balance.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Callable

from fenceserver.util.constants import (
    ACTION_ALIASES,
    ACTION_HEAL,
    ACTION_READY,
    ACTION_SEND_BOSS,
    ACTION_SEND_GRENADE,
    ACTION_SEND_PREFIX,
    ACTION_UPGRADE_WEAPON,
    opponent_side,
)
from fenceserver.util.events import EventBus, PurchaseMade

if TYPE_CHECKING:
    from fenceserver.loaders.game_config_loader import GameConfig, WeaponStats
    from fenceserver.models.match import MatchState
    from fenceserver.models.player import Player

log = logging.getLogger(__name__)


def weapon_stats_for_level(
    base: WeaponStats, level: int, config: GameConfig,
) -> tuple[float, float, float]:
    """Return (damage, cooldown, bullet_speed) of a weapon at *level*.

    Damage grows geometrically, cooldown shrinks geometrically down to a
    floor, bullet speed grows linearly.
    """
    steps = level - 1
    damage = float(math.floor(base.damage * config.upgrade_damage_growth ** steps))
    cooldown = max(config.min_weapon_cooldown, base.cooldown * config.upgrade_cooldown_decay ** steps)
    bullet_speed = base.bullet_speed * (1 + config.upgrade_speed_growth * steps)
    return damage, cooldown, bullet_speed


def normalize_action(action: object) -> str | None:
    """Map a raw action id (including legacy aliases) to its canonical id."""
    if not isinstance(action, str):
        return None
    action = action.strip().lower()
    return ACTION_ALIASES.get(action, action)


class ShopService:
    """Applies shop purchases to a match.

    Args:
        config: Game configuration (costs, caps, weapon stats).
        event_bus: Receives PurchaseMade events.
    """

    def __init__(self, config: GameConfig, event_bus: EventBus) -> None:
        self._config = config
        self._events = event_bus
        self._handlers: dict[str, Callable[[MatchState, Player], bool]] = {
            ACTION_UPGRADE_WEAPON: self._upgrade_weapon,
            ACTION_HEAL: self._heal,
            ACTION_SEND_BOSS: self._send_boss,
            ACTION_SEND_GRENADE: self._send_grenade,
            ACTION_READY: self._ready,
        }

    # -- Weapons ---------------------------------------------------------

    def equip(self, player: Player, weapon_type: object) -> bool:
        """Give *player* a level-1 weapon. Unknown weapon types are ignored."""
        if not isinstance(weapon_type, str):
            return False
        base = self._config.weapons.get(weapon_type.strip().lower())
        if base is None:
            return False
        player.weapon_type = weapon_type.strip().lower()
        player.weapon_level = 1
        self._apply_level(player, base)
        player.weapon_timer = 0.0
        return True

    def _apply_level(self, player: Player, base: WeaponStats) -> None:
        damage, cooldown, speed = weapon_stats_for_level(base, player.weapon_level, self._config)
        player.weapon_damage = damage
        player.weapon_cooldown = cooldown
        player.bullet_speed = speed

    # -- Dispatch --------------------------------------------------------

    def apply(self, match: MatchState, player: Player, action: object) -> bool:
        """Apply one shop action for *player*. Returns True if state changed."""
        canonical = normalize_action(action)
        if canonical is None:
            return False
        if canonical.startswith(ACTION_SEND_PREFIX):
            return self._send_pack(match, player, canonical[len(ACTION_SEND_PREFIX):])
        handler = self._handlers.get(canonical)
        if handler is None:
            log.debug("Unknown shop action %r from player %d", action, player.pid)
            return False
        return handler(match, player)

    def _charge(self, player: Player, cost: int) -> bool:
        if cost < 0 or player.gold < cost:
            return False
        player.gold -= cost
        return True

    def _purchased(self, player: Player, action: str, cost: int) -> bool:
        self._events.emit(PurchaseMade(player_id=player.pid, action=action, cost=cost))
        log.info("[SHOP] Player %d bought %s for %d gold (left: %d)", player.pid, action, cost, player.gold)
        return True

    # -- Actions ---------------------------------------------------------

    def _upgrade_weapon(self, match: MatchState, player: Player) -> bool:
        cfg = self._config
        base = cfg.weapons.get(player.weapon_type) if player.weapon_type else None
        if base is None or player.weapon_level >= cfg.max_weapon_level:
            return False
        cost = cfg.shop_costs.upgrade_weapon
        if not self._charge(player, cost):
            return False
        player.weapon_level += 1
        self._apply_level(player, base)
        return self._purchased(player, ACTION_UPGRADE_WEAPON, cost)

    def _heal(self, match: MatchState, player: Player) -> bool:
        cfg = self._config
        if not player.is_alive or player.hp >= player.max_hp:
            return False
        cost = cfg.shop_costs.heal
        if not self._charge(player, cost):
            return False
        player.heal(cfg.heal_amount)
        return self._purchased(player, ACTION_HEAL, cost)

    def _send_pack(self, match: MatchState, player: Player, kind: str) -> bool:
        arch = self._config.archetype(kind)
        if arch is None or arch.is_boss or arch.pack_cost <= 0:
            return False
        if not self._charge(player, arch.pack_cost):
            return False
        match.sides[opponent_side(player.side)].queued_packs[kind] += 1
        return self._purchased(player, ACTION_SEND_PREFIX + kind, arch.pack_cost)

    def _send_boss(self, match: MatchState, player: Player) -> bool:
        cost = self._config.shop_costs.send_boss
        if not self._charge(player, cost):
            return False
        match.sides[opponent_side(player.side)].queued_bosses += 1
        return self._purchased(player, ACTION_SEND_BOSS, cost)

    def _send_grenade(self, match: MatchState, player: Player) -> bool:
        cfg = self._config
        if player.grenades_bought >= cfg.max_grenades_per_shop:
            return False
        cost = cfg.shop_costs.send_grenade
        if not self._charge(player, cost):
            return False
        player.grenades_bought += 1
        match.sides[opponent_side(player.side)].queued_grenades.append(player.pid)
        return self._purchased(player, ACTION_SEND_GRENADE, cost)

    def _ready(self, match: MatchState, player: Player) -> bool:
        state = match.sides[player.side]
        if state.ready:
            return False
        state.ready = True
        log.info("[SHOP] Player %d is ready", player.pid)
        return True
