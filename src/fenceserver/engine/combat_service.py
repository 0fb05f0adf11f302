"""Combat service — per-tick movement, firing and collision resolution.

Tick order (must be preserved):
1. step_players     : move by intent, clamp to own half, tick timers
2. step_aim_and_fire: aim at nearest same-side monster, auto-fire
3. step_monsters    : chase nearest same-side player, clamp to own half
4. step_ranged      : ranged monsters spit at players in range
5. step_grenades    : fuse countdown, one-shot falloff blast
6. step_projectiles : integrate bullets and spit, cull spent ones
7. resolve_*        : bullets vs monsters, spit vs players,
                    melee contact, pickup collection
8. sweep            : drop dead entities

Dead entities stay in their collections until ``sweep`` so every
later step of the same tick still sees them (and skips them).
"""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING, Mapping

from fenceserver.models.inputs import InputIntent
from fenceserver.models.pickup import BuffPotion, GoldDrop, HeartPickup
from fenceserver.models.projectile import Bullet, EnemyBullet
from fenceserver.util.constants import OUT_OF_BOUNDS_MARGIN, SIDE_LEFT
from fenceserver.util.events import EventBus, MonsterKilled
from fenceserver.util.geometry import clamp_to_half, distance, fence_x, in_arena_margin, normalize

if TYPE_CHECKING:
    from fenceserver.loaders.game_config_loader import GameConfig
    from fenceserver.models.match import MatchState
    from fenceserver.models.monster import Monster
    from fenceserver.models.player import Player

log = logging.getLogger(__name__)


class CombatService:
    """Physics and collision step of the arena.

    Args:
        config: Game configuration.
        rng: Random source for spread, loot rolls and spit cooldowns.
        event_bus: Receives MonsterKilled events.
    """

    def __init__(self, config: GameConfig, rng: random.Random, event_bus: EventBus) -> None:
        self._config = config
        self._rng = rng
        self._events = event_bus

    def step(self, match: MatchState, dt: float, inputs: Mapping[int, InputIntent]) -> None:
        """Run one full physics/collision tick."""
        self.step_players(match, dt, inputs)
        self.step_aim_and_fire(match)
        self.step_monsters(match, dt)
        self.step_ranged(match, dt)
        self.step_grenades(match, dt)
        self.step_projectiles(match, dt)
        self.resolve_bullet_hits(match)
        self.resolve_enemy_bullets(match)
        self.resolve_contacts(match)
        self.collect_pickups(match)
        self.sweep(match)

    # -- Targeting helpers -----------------------------------------------

    @staticmethod
    def nearest_monster(match: MatchState, player: Player) -> Monster | None:
        best: Monster | None = None
        best_dist = math.inf
        for monster in match.monsters:
            if not monster.is_alive or monster.side != player.side:
                continue
            d = distance(player.x, player.y, monster.x, monster.y)
            if d < best_dist:
                best, best_dist = monster, d
        return best

    @staticmethod
    def nearest_player(match: MatchState, monster: Monster) -> Player | None:
        best: Player | None = None
        best_dist = math.inf
        for player in match.players.values():
            if not player.is_alive or player.side != monster.side:
                continue
            d = distance(monster.x, monster.y, player.x, player.y)
            if d < best_dist:
                best, best_dist = player, d
        return best

    # -- 1. Players ------------------------------------------------------

    def step_players(self, match: MatchState, dt: float, inputs: Mapping[int, InputIntent]) -> None:
        """Move players by their intent and clamp them to their half."""
        cfg = self._config
        for pid, player in match.players.items():
            player.tick_timers(dt)
            if not player.is_alive:
                continue
            intent = InputIntent.from_mapping(inputs.get(pid))
            dx, dy = normalize(*intent.vector)
            player.x += dx * cfg.player_speed * dt
            player.y += dy * cfg.player_speed * dt
            player.x, player.y = clamp_to_half(
                cfg, player.side, player.x, player.y, player.width / 2, player.height / 2)

    # -- 2. Aim & fire ---------------------------------------------------

    def step_aim_and_fire(self, match: MatchState) -> None:
        """Aim at the nearest same-side monster and fire when ready.

        Without a target the aim returns toward the fence and no shot is
        fired.
        """
        for player in match.players.values():
            if not player.is_alive:
                continue
            target = self.nearest_monster(match, player)
            if target is None:
                player.reset_aim()
                continue
            player.aim_at(target.x, target.y)
            if player.can_shoot:
                match.bullets.append(self._fire(match, player))

    def _fire(self, match: MatchState, player: Player) -> Bullet:
        cfg = self._config
        stats = cfg.weapons[player.weapon_type]
        player.weapon_timer = player.weapon_cooldown / player.attack_speed_mult

        angle = math.atan2(player.aim_dy, player.aim_dx)
        angle += (self._rng.random() - 0.5) * stats.spread
        dx, dy = math.cos(angle), math.sin(angle)
        bullet = Bullet(
            bid=match.next_id("bullet"),
            owner_id=player.pid,
            side=player.side,
            x=player.x + dx * stats.tip,
            y=player.y + dy * stats.tip,
            vx=dx * player.bullet_speed,
            vy=dy * player.bullet_speed,
            damage=player.weapon_damage * player.damage_mult,
            weapon_type=player.weapon_type,
            lifetime=cfg.bullet_lifetime,
            pierce=stats.pierce,
        )
        return bullet

    # -- 3. Monster movement ---------------------------------------------

    def step_monsters(self, match: MatchState, dt: float) -> None:
        """Each monster walks straight at the nearest same-side player."""
        cfg = self._config
        for monster in match.monsters:
            if not monster.is_alive:
                continue
            target = self.nearest_player(match, monster)
            if target is None:
                continue
            dx, dy = normalize(target.x - monster.x, target.y - monster.y)
            monster.x += dx * monster.speed * dt
            monster.y += dy * monster.speed * dt
            monster.x, monster.y = clamp_to_half(cfg, monster.side, monster.x, monster.y, monster.radius)

    # -- 4. Ranged monsters ----------------------------------------------

    def step_ranged(self, match: MatchState, dt: float) -> None:
        """Ranged monsters spit at a same-side player within range."""
        cfg = self._config
        for monster in match.monsters:
            if not monster.is_alive or monster.fire_cooldown is None:
                continue
            monster.fire_cooldown -= dt
            if monster.fire_cooldown > 0:
                continue
            target = self.nearest_player(match, monster)
            if target is None:
                continue
            if distance(monster.x, monster.y, target.x, target.y) > cfg.spitter_range:
                continue
            dx, dy = normalize(target.x - monster.x, target.y - monster.y)
            match.enemy_bullets.append(EnemyBullet(
                eid=match.next_id("enemy_bullet"),
                side=monster.side,
                x=monster.x,
                y=monster.y,
                vx=dx * cfg.enemy_bullet_speed,
                vy=dy * cfg.enemy_bullet_speed,
                damage=cfg.enemy_bullet_damage,
                lifetime=cfg.enemy_bullet_lifetime,
                radius=cfg.enemy_bullet_radius,
            ))
            monster.fire_cooldown = self._rng.uniform(cfg.spitter_cooldown_min, cfg.spitter_cooldown_max)

    # -- 5. Grenades -----------------------------------------------------

    def step_grenades(self, match: MatchState, dt: float) -> None:
        """Count down fuses; detonate each grenade exactly once."""
        for grenade in match.grenades:
            if grenade.exploded:
                continue
            grenade.fuse -= dt
            if grenade.fuse > 0:
                continue
            grenade.exploded = True
            for player in match.players.values():
                if player.side != grenade.side or not player.is_alive:
                    continue
                damage = grenade.damage_at(distance(grenade.x, grenade.y, player.x, player.y))
                if damage > 0:
                    player.take_damage(damage)
            for monster in match.monsters:
                if monster.side != grenade.side or not monster.is_alive:
                    continue
                damage = grenade.damage_at(distance(grenade.x, grenade.y, monster.x, monster.y))
                if damage > 0:
                    monster.take_damage(damage)
            log.debug("[GRENADE] gid=%d exploded on %s", grenade.gid, grenade.side)

    # -- 6. Projectiles --------------------------------------------------

    def step_projectiles(self, match: MatchState, dt: float) -> None:
        """Integrate projectiles; mark expired or out-of-bounds ones dead."""
        cfg = self._config
        fence = fence_x(cfg)
        for bullet in match.bullets:
            bullet.x += bullet.vx * dt
            bullet.y += bullet.vy * dt
            bullet.lifetime -= dt
            if bullet.lifetime <= 0 or not in_arena_margin(cfg, bullet.x, bullet.y, OUT_OF_BOUNDS_MARGIN):
                bullet.dead = True
        for spit in match.enemy_bullets:
            spit.x += spit.vx * dt
            spit.y += spit.vy * dt
            spit.lifetime -= dt
            crossed = spit.x > fence if spit.side == SIDE_LEFT else spit.x < fence
            if crossed or spit.lifetime <= 0 or not in_arena_margin(cfg, spit.x, spit.y, OUT_OF_BOUNDS_MARGIN):
                spit.dead = True

    # -- 7. Collisions ---------------------------------------------------

    def resolve_bullet_hits(self, match: MatchState) -> None:
        """Player bullets vs same-side monsters.

        A bullet damages each monster at most once per tick and at most
        ``pierce + 1`` monsters in total; it is destroyed on the hit that
        exhausts its pierce.
        """
        cfg = self._config
        for bullet in match.bullets:
            if bullet.dead:
                continue
            candidates = []
            for monster in match.monsters:
                if not monster.is_alive or monster.side != bullet.side:
                    continue
                d = distance(bullet.x, bullet.y, monster.x, monster.y)
                if d <= monster.radius + cfg.bullet_hit_radius:
                    candidates.append((d, monster.mid, monster))
            if not candidates:
                continue
            candidates.sort(key=lambda c: (c[0], c[1]))
            hits = 0
            for _, _, monster in candidates:
                if hits > bullet.pierce:
                    break
                monster.take_damage(bullet.damage)
                hits += 1
                if not monster.is_alive:
                    self._monster_killed(match, monster, bullet.owner_id)
            if hits > bullet.pierce:
                bullet.dead = True
            else:
                bullet.pierce -= hits

    def _monster_killed(self, match: MatchState, monster: Monster, killer_id: int) -> None:
        """Kill credit and independent loot rolls for a shot-down monster."""
        cfg = self._config
        owner = match.players.get(killer_id)
        if owner is not None:
            owner.monsters_killed += 1
            owner.score += cfg.kill_score
        if self._rng.random() < cfg.gold_drop_chance:
            match.gold_drops.append(GoldDrop(
                gid=match.next_id("gold"), x=monster.x, y=monster.y, amount=cfg.gold_per_pickup))
        if self._rng.random() < cfg.heart_drop_chance:
            match.hearts.append(HeartPickup(
                hid=match.next_id("heart"), x=monster.x, y=monster.y, heal_amount=cfg.heart_heal))
        if self._rng.random() < cfg.potion_drop_chance:
            match.potions.append(BuffPotion(
                pid=match.next_id("potion"), x=monster.x, y=monster.y,
                duration=cfg.buff_duration, damage_mult=cfg.buff_damage_mult,
                attack_speed_mult=cfg.buff_attack_speed_mult))
        self._events.emit(MonsterKilled(monster_id=monster.mid, killer_id=killer_id, kind=monster.kind))
        log.debug("[KILLED] Monster mid=%d (%s) killed by player %d", monster.mid, monster.kind, killer_id)

    def resolve_enemy_bullets(self, match: MatchState) -> None:
        """Spit vs same-side players: damage and self-destruct on hit."""
        for spit in match.enemy_bullets:
            if spit.dead:
                continue
            for player in match.players.values():
                if not player.is_alive or player.side != spit.side:
                    continue
                if distance(spit.x, spit.y, player.x, player.y) <= spit.radius + player.width / 2:
                    player.take_damage(spit.damage)
                    spit.dead = True
                    break

    def resolve_contacts(self, match: MatchState) -> None:
        """Melee: a monster touching a same-side player hurts it and dies."""
        cfg = self._config
        for monster in match.monsters:
            if not monster.is_alive:
                continue
            for player in match.players.values():
                if not player.is_alive or player.side != monster.side:
                    continue
                if distance(monster.x, monster.y, player.x, player.y) <= monster.radius + cfg.contact_range:
                    player.take_damage(cfg.contact_damage)
                    monster.hp = 0.0
                    break

    def collect_pickups(self, match: MatchState) -> None:
        """Living players collect pickups within the pickup radius."""
        radius = self._config.pickup_radius
        for player in match.players.values():
            if not player.is_alive:
                continue
            for gold in match.gold_drops:
                if not gold.taken and distance(player.x, player.y, gold.x, gold.y) <= radius:
                    player.gold += gold.amount
                    gold.taken = True
            for heart in match.hearts:
                if not heart.taken and distance(player.x, player.y, heart.x, heart.y) <= radius:
                    player.heal(heart.heal_amount)
                    heart.taken = True
            for potion in match.potions:
                if not potion.taken and distance(player.x, player.y, potion.x, potion.y) <= radius:
                    player.grant_buff(potion.damage_mult, potion.attack_speed_mult, potion.duration)
                    potion.taken = True

    # -- 8. Sweep --------------------------------------------------------

    @staticmethod
    def sweep(match: MatchState) -> None:
        """Rebuild every collection without its dead entries."""
        match.monsters = [m for m in match.monsters if m.is_alive]
        match.bullets = [b for b in match.bullets if not b.dead]
        match.enemy_bullets = [s for s in match.enemy_bullets if not s.dead]
        match.grenades = [g for g in match.grenades if not g.exploded]
        match.gold_drops = [g for g in match.gold_drops if not g.taken]
        match.hearts = [h for h in match.hearts if not h.taken]
        match.potions = [p for p in match.potions if not p.taken]
