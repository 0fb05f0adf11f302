"""Game core — authoritative match state machine.

Phases:
    WEAPON_SELECT → PLAYING → SHOP → PLAYING → ... → GAME_OVER

``step`` is the only way time advances. The action entry points
(``choose_weapon``, ``shop_action``, ``ready``, ``restart``,
``handle_disconnect``) run between ticks and silently ignore anything
that is not valid in the current phase.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Any, Mapping

from fenceserver.engine.combat_service import CombatService
from fenceserver.engine.shop_service import ShopService
from fenceserver.engine.snapshot import export_state
from fenceserver.engine.spawn_service import SpawnService
from fenceserver.loaders.game_config_loader import GameConfig
from fenceserver.models.inputs import InputIntent
from fenceserver.models.match import MatchState, Phase
from fenceserver.models.player import Player
from fenceserver.util.constants import ACTION_READY, DRAW, SIDE_FOR_PLAYER, SIDE_LEFT
from fenceserver.util.events import EventBus, MatchFinished, PhaseChanged, PlayerDefeated

log = logging.getLogger(__name__)


class GameCore:
    """Owns one match and advances it in fixed timesteps.

    Args:
        config: Game configuration; defaults are used when omitted.
        seed: Seed for the core's random source (tests).
        rng: Explicit random source; takes precedence over ``seed``.
        event_bus: Bus receiving match events; a private one is created
            when omitted.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        seed: int | None = None,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rng = rng if rng is not None else random.Random(seed)
        self.events = event_bus or EventBus()
        self.spawner = SpawnService(self.config, self.rng, self.events)
        self.combat = CombatService(self.config, self.rng, self.events)
        self.shop = ShopService(self.config, self.events)
        self.match = self._new_match()

    # -- Construction ----------------------------------------------------

    def _new_match(self) -> MatchState:
        return MatchState(players={pid: self._new_player(pid) for pid in SIDE_FOR_PLAYER})

    def _new_player(self, pid: int) -> Player:
        cfg = self.config
        side = SIDE_FOR_PLAYER[pid]
        x_frac = 0.25 if side == SIDE_LEFT else 0.75
        return Player(
            pid=pid,
            side=side,
            x=cfg.arena_width * x_frac,
            y=cfg.arena_height * 0.65,
            width=cfg.player_size,
            height=cfg.player_size,
            hp=cfg.player_max_hp,
            max_hp=cfg.player_max_hp,
        )

    # -- Queries ---------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.match.phase

    def get_player(self, pid: int) -> Player | None:
        return self.match.players.get(pid)

    def export_state(self) -> dict[str, Any]:
        """Plain-data snapshot of the match (see engine/snapshot.py)."""
        return export_state(self.match)

    # -- Tick ------------------------------------------------------------

    def step(self, dt: float, inputs: Mapping[int, Any] | None = None) -> None:
        """Advance the match by *dt* seconds.

        Args:
            dt: Tick length in seconds. Non-positive or non-finite values
                are ignored.
            inputs: Player id → InputIntent or ``{up, down, left, right}``
                mapping. Missing players count as neutral.
        """
        if not isinstance(dt, (int, float)) or not math.isfinite(dt) or dt <= 0:
            return
        phase = self.match.phase
        if phase is Phase.WEAPON_SELECT:
            self._step_weapon_select()
        elif phase is Phase.PLAYING:
            self._step_playing(dt, inputs or {})
        elif phase is Phase.SHOP:
            self._step_shop(dt)

    def _step_weapon_select(self) -> None:
        if all(p.has_chosen_weapon for p in self.match.players.values()):
            self._start_wave()

    def _step_shop(self, dt: float) -> None:
        match = self.match
        match.shop_left -= dt
        both_ready = all(state.ready for state in match.sides.values())
        if match.shop_left <= 0 or both_ready:
            match.shop_left = 0.0
            match.round += 1
            self._start_wave()

    def _step_playing(self, dt: float, inputs: Mapping[int, Any]) -> None:
        match = self.match
        intents = {pid: InputIntent.from_mapping(inputs.get(pid)) for pid in match.players}
        alive_before = {pid for pid, p in match.players.items() if p.is_alive}

        self.spawner.step(match, dt)
        self.combat.step(match, dt, intents)

        for pid in sorted(alive_before):
            if not match.players[pid].is_alive:
                self.events.emit(PlayerDefeated(player_id=pid))
                log.info("[DEFEAT] Player %d fell in round %d", pid, match.round)

        match.wave_left -= dt
        if match.wave_left <= 0:
            match.wave_left = 0.0
            self._enter_shop()
        elif any(not p.is_alive for p in match.players.values()):
            self._finish()

    # -- Transitions -----------------------------------------------------

    def _set_phase(self, new_phase: Phase) -> None:
        old_phase = self.match.phase
        self.match.phase = new_phase
        self.events.emit(PhaseChanged(
            old_phase=old_phase.value, new_phase=new_phase.value, round=self.match.round))
        log.info("[PHASE] %s -> %s (round %d)", old_phase.value, new_phase.value, self.match.round)

    def _start_wave(self) -> None:
        """Clear the arena, plan the wave and enter PLAYING."""
        match = self.match
        match.clear_entities()
        self.spawner.begin_wave(match)
        match.wave_left = self.config.wave_time
        for player in match.players.values():
            player.reset_aim()
            player.weapon_timer = 0.0
        self._set_phase(Phase.PLAYING)

    def _enter_shop(self) -> None:
        match = self.match
        match.shop_left = self.config.shop_time
        for state in match.sides.values():
            state.ready = False
        for player in match.players.values():
            player.grenades_bought = 0
        self._set_phase(Phase.SHOP)

    def _finish(self) -> None:
        match = self.match
        survivors = [p.side for p in match.players.values() if p.is_alive]
        match.winner = survivors[0] if len(survivors) == 1 else DRAW
        self._set_phase(Phase.GAME_OVER)
        self.events.emit(MatchFinished(winner=match.winner, round=match.round))

    # -- Actions ---------------------------------------------------------

    def choose_weapon(self, pid: int, weapon_type: object) -> bool:
        """Register a weapon choice (WEAPON_SELECT only)."""
        if self.match.phase is not Phase.WEAPON_SELECT:
            return False
        player = self.get_player(pid)
        if player is None:
            return False
        if not self.shop.equip(player, weapon_type):
            log.debug("Player %d chose unknown weapon %r", pid, weapon_type)
            return False
        log.info("Player %d picked %s", pid, player.weapon_type)
        return True

    def shop_action(self, pid: int, action: object) -> bool:
        """Apply a shop purchase or the ready signal (SHOP only)."""
        if self.match.phase is not Phase.SHOP:
            return False
        player = self.get_player(pid)
        if player is None:
            return False
        return self.shop.apply(self.match, player, action)

    def ready(self, pid: int) -> bool:
        """Mark *pid*'s side ready to start the next wave."""
        return self.shop_action(pid, ACTION_READY)

    def restart(self) -> bool:
        """Rebuild the match from scratch (GAME_OVER only)."""
        if self.match.phase is not Phase.GAME_OVER:
            return False
        old_phase = self.match.phase
        self.match = self._new_match()
        self.events.emit(PhaseChanged(
            old_phase=old_phase.value, new_phase=self.match.phase.value, round=self.match.round))
        log.info("[PHASE] Match restarted")
        return True

    def handle_disconnect(self, pid: int) -> None:
        """Apply the disconnect rule for a player slot.

        During WEAPON_SELECT the choice is cleared so the match cannot
        start without the player; during PLAYING the player forfeits and
        ``PlayerDefeated`` is emitted right away. The match result is
        resolved on the next tick.
        """
        player = self.get_player(pid)
        if player is None:
            return
        phase = self.match.phase
        if phase is Phase.WEAPON_SELECT:
            player.clear_weapon()
            log.info("Player %d left during weapon select", pid)
        elif phase is Phase.PLAYING and player.is_alive:
            player.hp = 0.0
            self.events.emit(PlayerDefeated(player_id=pid))
            log.info("[DEFEAT] Player %d left mid-wave and forfeits", pid)
