"""Snapshot exporter — plain, JSON-serialisable view of a match.

The snapshot is the only channel through which transport and rendering
observe the simulation. Every value is copied out of the live state, so
consumers may keep or mutate it freely.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fenceserver.util.constants import SIDES

if TYPE_CHECKING:
    from fenceserver.models.match import MatchState, SideSpawnState
    from fenceserver.models.player import Player


def export_state(match: MatchState) -> dict[str, Any]:
    """Serialise the full match state for broadcast."""
    return {
        "phase": match.phase.value,
        "round": match.round,
        "wave_left": max(0.0, match.wave_left),
        "shop_left": max(0.0, match.shop_left),
        "winner": match.winner,
        "boss_round": match.boss_round,
        "sides": {side: _serialize_side(match.sides[side]) for side in SIDES},
        "players": [_serialize_player(p) for _, p in sorted(match.players.items())],
        "monsters": [
            {
                "id": m.mid,
                "side": m.side,
                "kind": m.kind,
                "x": m.x,
                "y": m.y,
                "hp": m.hp,
                "max_hp": m.max_hp,
                "radius": m.radius,
                "is_boss": m.is_boss,
            }
            for m in match.monsters
        ],
        "bullets": [
            {
                "id": b.bid,
                "owner_id": b.owner_id,
                "side": b.side,
                "x": b.x,
                "y": b.y,
                "weapon_type": b.weapon_type,
            }
            for b in match.bullets
        ],
        "enemy_bullets": [
            {"id": s.eid, "side": s.side, "x": s.x, "y": s.y, "radius": s.radius}
            for s in match.enemy_bullets
        ],
        "grenades": [
            {"id": g.gid, "side": g.side, "x": g.x, "y": g.y, "fuse": g.fuse, "radius": g.radius}
            for g in match.grenades
        ],
        "gold_drops": [
            {"id": g.gid, "x": g.x, "y": g.y, "amount": g.amount}
            for g in match.gold_drops
        ],
        "hearts": [
            {"id": h.hid, "x": h.x, "y": h.y, "heal_amount": h.heal_amount}
            for h in match.hearts
        ],
        "potions": [
            {"id": p.pid, "x": p.x, "y": p.y, "duration": p.duration}
            for p in match.potions
        ],
        "spawn_warnings": [
            {
                "id": w.wid,
                "side": w.side,
                "kind": w.kind,
                "x": w.x,
                "y": w.y,
                "timer": w.timer,
                "duration": w.duration,
            }
            for w in match.spawn_warnings
        ],
    }


def _serialize_side(state: SideSpawnState) -> dict[str, Any]:
    return {
        "ready": state.ready,
        "queued_packs": dict(state.queued_packs),
        "queued_bosses": state.queued_bosses,
        "queued_grenades": len(state.queued_grenades),
        "baseline_target": state.baseline_target,
        "baseline_spawned": state.baseline_spawned,
        "reinforcements_left": len(state.reinforcement_plan),
    }


def _serialize_player(player: Player) -> dict[str, Any]:
    buff = None
    if player.buff is not None:
        buff = {
            "damage_mult": player.buff.damage_mult,
            "attack_speed_mult": player.buff.attack_speed_mult,
            "remaining": player.buff.remaining,
        }
    return {
        "id": player.pid,
        "side": player.side,
        "x": player.x,
        "y": player.y,
        "hp": player.hp,
        "max_hp": player.max_hp,
        "gold": player.gold,
        "score": player.score,
        "monsters_killed": player.monsters_killed,
        "weapon_type": player.weapon_type,
        "weapon_level": player.weapon_level,
        "has_chosen_weapon": player.has_chosen_weapon,
        "aim_dx": player.aim_dx,
        "aim_dy": player.aim_dy,
        "buff": buff,
        "grenades_bought": player.grenades_bought,
    }
