"""Spawn service — wave planning, telegraphed spawns and round scaling.

Each side runs two independent spawn tracks during a wave:

1. baseline  : ``baseline_target`` monsters, one per ``spawn_interval``.
               Kinds are drawn from the archetype weights, except on boss
               rounds where the baseline is a few bosses of the round's tier.
2. reinforcement: the flattened list of packs and bosses the opponent
               bought in the previous shop, one per reinforcement interval.

Both tracks emit SpawnWarnings first; a warning turns into a Monster
when its telegraph timer runs out. Both are deferred while the arena
holds ``max_monsters`` live monsters plus pending warnings.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from fenceserver.models.grenade import Grenade
from fenceserver.models.monster import Monster
from fenceserver.models.spawn_warning import SpawnWarning
from fenceserver.util.constants import SIDES
from fenceserver.util.events import EventBus, MonsterSpawned
from fenceserver.util.geometry import half_bounds

if TYPE_CHECKING:
    from fenceserver.loaders.game_config_loader import GameConfig
    from fenceserver.models.match import MatchState, SideSpawnState

log = logging.getLogger(__name__)


class SpawnService:
    """Schedules monster spawns for both halves of the arena.

    Args:
        config: Game configuration (spawner, monster and boss tunables).
        rng: Random source shared with the rest of the core.
        event_bus: Receives MonsterSpawned events.
    """

    def __init__(self, config: GameConfig, rng: random.Random, event_bus: EventBus) -> None:
        self._config = config
        self._rng = rng
        self._events = event_bus

    # -- Round scaling ---------------------------------------------------

    def baseline_quota(self, round_no: int) -> int:
        """Baseline monsters per side for a regular round."""
        cfg = self._config
        return round(cfg.base_target * cfg.target_scale ** round_no)

    def is_boss_round(self, round_no: int) -> bool:
        interval = self._config.boss_round_interval
        return interval > 0 and round_no % interval == 0

    def boss_tier(self, round_no: int) -> int:
        cfg = self._config
        tier = 1 + (round_no - 1) // max(1, cfg.boss_tier_interval)
        return max(1, min(cfg.max_boss_tier, tier))

    def boss_kind(self, round_no: int) -> str | None:
        return self._config.boss_kind_for_tier(self.boss_tier(round_no))

    def spawn_interval(self, round_no: int) -> float:
        cfg = self._config
        factor = max(0.0, 1.0 - (round_no - 1) * cfg.spawn_interval_decay)
        interval = cfg.min_spawn_interval + factor * (cfg.base_spawn_interval - cfg.min_spawn_interval)
        return max(cfg.min_spawn_interval, interval)

    def monster_stats(self, kind: str, round_no: int) -> tuple[float, float, float]:
        """Round-scaled (hp, speed, radius) for an archetype."""
        cfg = self._config
        arch = cfg.archetype(kind)
        hp_mult = arch.hp_mult if arch else 1.0
        speed_mult = arch.speed_mult if arch else 1.0
        radius = arch.radius if arch else 18.0
        hp_base = cfg.monster_base_hp * cfg.monster_hp_scale ** (round_no - 1)
        speed_base = cfg.monster_base_speed * cfg.monster_speed_scale ** (round_no - 1)
        hp = max(cfg.monster_min_hp, float(round(hp_base * hp_mult)))
        speed = max(cfg.monster_min_speed, speed_base * speed_mult)
        return hp, speed, radius

    # -- Wave setup ------------------------------------------------------

    def begin_wave(self, match: MatchState) -> None:
        """Initialise per-side spawn tracks for ``match.round``.

        Consumes the shop queues: packs and bosses become the
        reinforcement plan, grenades are deployed as armed hazards.
        """
        cfg = self._config
        round_no = match.round
        boss_round = self.is_boss_round(round_no)
        boss_kind = self.boss_kind(round_no)
        match.boss_round = boss_round and boss_kind is not None
        match.spawn_interval = self.spawn_interval(round_no)

        for side in SIDES:
            state = match.sides[side]
            if match.boss_round:
                state.baseline_target = cfg.boss_count
                state.baseline_kind = boss_kind
            else:
                state.baseline_target = self.baseline_quota(round_no)
                state.baseline_kind = None
            state.baseline_spawned = 0
            state.spawn_cooldown = cfg.first_spawn_delay
            state.reinforcement_plan = self._build_plan(state, boss_kind)
            state.reinforcement_cooldown = cfg.reinforcement_delay
            self._deploy_grenades(match, side, state)

            log.info("[WAVE] round=%d side=%s baseline=%d (%s) reinforcements=%d",
                     round_no, side, state.baseline_target,
                     state.baseline_kind or "mixed", len(state.reinforcement_plan))

    def _build_plan(self, state: SideSpawnState, boss_kind: str | None) -> list[str]:
        """Flatten queued packs (purchase order) and bosses into one list."""
        plan: list[str] = []
        for kind, packs in state.queued_packs.items():
            plan.extend([kind] * (packs * self._config.pack_size))
        if boss_kind is not None:
            plan.extend([boss_kind] * state.queued_bosses)
        state.queued_packs.clear()
        state.queued_bosses = 0
        return plan

    def _deploy_grenades(self, match: MatchState, side: str, state: SideSpawnState) -> None:
        cfg = self._config
        min_x, max_x, min_y, max_y = half_bounds(cfg, side, 0.0)
        for owner_id in state.queued_grenades:
            grenade = Grenade(
                gid=match.next_id("grenade"),
                side=side,
                owner_id=owner_id,
                x=self._rng.uniform(min_x, max_x),
                y=self._rng.uniform(min_y, max_y),
                fuse=cfg.grenade_fuse,
                radius=cfg.grenade_radius,
                damage=cfg.grenade_damage,
            )
            match.grenades.append(grenade)
            log.debug("[GRENADE] gid=%d armed on %s at (%.0f, %.0f)",
                      grenade.gid, side, grenade.x, grenade.y)
        state.queued_grenades.clear()

    # -- Per-tick stepping -----------------------------------------------

    def step(self, match: MatchState, dt: float) -> None:
        """Advance both spawn tracks and materialise expired warnings."""
        if match.wave_left > 0:
            for side in SIDES:
                self._step_baseline(match, side, dt)
                self._step_reinforcements(match, side, dt)
        self._step_warnings(match, dt)

    def _at_cap(self, match: MatchState) -> bool:
        return match.pending_monster_count >= self._config.max_monsters

    def _step_baseline(self, match: MatchState, side: str, dt: float) -> None:
        state = match.sides[side]
        if state.baseline_spawned >= state.baseline_target:
            return
        state.spawn_cooldown -= dt
        if state.spawn_cooldown > 0:
            return
        if self._at_cap(match):
            state.spawn_cooldown = 0.0
            return
        kind = state.baseline_kind or self.pick_kind()
        self.emit_warning(match, side, kind)
        state.baseline_spawned += 1
        state.spawn_cooldown = match.spawn_interval

    def _step_reinforcements(self, match: MatchState, side: str, dt: float) -> None:
        state = match.sides[side]
        if not state.reinforcement_plan:
            return
        state.reinforcement_cooldown -= dt
        if state.reinforcement_cooldown > 0:
            return
        if self._at_cap(match):
            state.reinforcement_cooldown = 0.0
            return
        kind = state.reinforcement_plan.pop(0)
        self.emit_warning(match, side, kind)
        state.reinforcement_cooldown = self._config.reinforcement_interval

    def _step_warnings(self, match: MatchState, dt: float) -> None:
        expired: list[SpawnWarning] = []
        for warning in match.spawn_warnings:
            warning.timer -= dt
            if warning.expired:
                expired.append(warning)
        if not expired:
            return
        match.spawn_warnings = [w for w in match.spawn_warnings if not w.expired]
        for warning in expired:
            self.materialize(match, warning)

    # -- Spawning primitives ---------------------------------------------

    def pick_kind(self) -> str:
        """Weighted random draw over archetypes with a spawn weight."""
        weighted = [(a.kind, a.spawn_weight) for a in self._config.monsters.values()
                    if a.spawn_weight > 0]
        total = sum(w for _, w in weighted)
        if total <= 0:
            return "slime"
        r = self._rng.random() * total
        acc = 0.0
        for kind, weight in weighted:
            acc += weight
            if r <= acc:
                return kind
        return weighted[-1][0]

    def emit_warning(self, match: MatchState, side: str, kind: str) -> SpawnWarning:
        """Create a telegraph for *kind* at a random spot on *side*."""
        cfg = self._config
        arch = cfg.archetype(kind)
        radius = arch.radius if arch else 18.0
        x_min, x_max, y_min, y_max = half_bounds(cfg, side, radius)
        y_max = max(y_min, min(y_max, cfg.arena_height * 0.4))
        warning = SpawnWarning(
            wid=match.next_id("warning"),
            side=side,
            kind=kind,
            round=match.round,
            x=self._rng.uniform(x_min, x_max),
            y=self._rng.uniform(y_min, y_max),
            duration=cfg.spawn_warning_time,
            timer=cfg.spawn_warning_time,
        )
        match.spawn_warnings.append(warning)
        return warning

    def materialize(self, match: MatchState, warning: SpawnWarning) -> Monster:
        """Turn an expired warning into a live monster at its position."""
        cfg = self._config
        arch = cfg.archetype(warning.kind)
        hp, speed, radius = self.monster_stats(warning.kind, warning.round)
        monster = Monster(
            mid=match.next_id("monster"),
            side=warning.side,
            kind=warning.kind,
            x=warning.x,
            y=warning.y,
            hp=hp,
            max_hp=hp,
            speed=speed,
            radius=radius,
            fire_cooldown=cfg.spitter_first_cooldown if arch and arch.ranged else None,
            is_boss=bool(arch and arch.is_boss),
        )
        match.monsters.append(monster)
        self._events.emit(MonsterSpawned(monster_id=monster.mid, side=monster.side, kind=monster.kind))
        log.debug("[SPAWN] Monster mid=%d (%s) on %s hp=%.0f speed=%.0f",
                  monster.mid, monster.kind, monster.side, hp, speed)
        return monster
