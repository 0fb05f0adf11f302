"""Tests for the economy and shop actions."""

import random

import pytest

from fenceserver.engine.game_core import GameCore
from fenceserver.engine.shop_service import normalize_action, weapon_stats_for_level
from fenceserver.loaders.game_config_loader import GameConfig
from fenceserver.models.match import Phase
from fenceserver.util.events import PurchaseMade

DT = 1 / 60


def _core_in_shop(gold: int = 100, weapon: str = "knife") -> GameCore:
    core = GameCore(seed=2)
    core.choose_weapon(1, weapon)
    core.choose_weapon(2, weapon)
    core.step(DT)
    core.match.wave_left = 0.01
    core.step(0.02)
    assert core.phase is Phase.SHOP
    for p in core.match.players.values():
        p.gold = gold
    return core


class TestWeaponLevels:
    def test_level_one_is_base(self):
        cfg = GameConfig()
        assert weapon_stats_for_level(cfg.weapons["axe"], 1, cfg) == (18.0, 0.65, 460.0)

    def test_level_three(self):
        cfg = GameConfig()
        damage, cooldown, speed = weapon_stats_for_level(cfg.weapons["knife"], 3, cfg)
        assert damage == 16.0
        assert cooldown == pytest.approx(0.2835)
        assert speed == pytest.approx(572.0)

    def test_cooldown_floor(self):
        cfg = GameConfig()
        _, cooldown, _ = weapon_stats_for_level(cfg.weapons["knife"], 40, cfg)
        assert cooldown == pytest.approx(0.15)


class TestNormalizeAction:
    def test_canonical_passthrough(self):
        assert normalize_action("heal") == "heal"
        assert normalize_action("send:tank") == "send:tank"

    def test_aliases(self):
        assert normalize_action(" UPGRADE ") == "upgrade_weapon"
        assert normalize_action("send_mobs") == "send:slime"
        assert normalize_action("extra_monsters") == "send:slime"
        assert normalize_action("start_round") == "ready"

    def test_non_string(self):
        assert normalize_action(None) is None
        assert normalize_action(42) is None


class TestUpgrade:
    def test_upgrade(self):
        core = _core_in_shop()
        assert core.shop_action(1, "upgrade_weapon")
        p = core.get_player(1)
        assert p.gold == 90
        assert p.weapon_level == 2
        assert p.weapon_damage == 13.0
        assert p.weapon_cooldown == pytest.approx(0.315)

    def test_legacy_name(self):
        core = _core_in_shop()
        assert core.shop_action(1, "upgrade")
        assert core.get_player(1).weapon_level == 2

    def test_max_level(self):
        core = _core_in_shop()
        for _ in range(4):
            assert core.shop_action(1, "upgrade_weapon")
        assert not core.shop_action(1, "upgrade_weapon")
        p = core.get_player(1)
        assert p.weapon_level == 5
        assert p.gold == 60

    def test_unaffordable(self):
        core = _core_in_shop(gold=5)
        assert not core.shop_action(1, "upgrade_weapon")
        p = core.get_player(1)
        assert (p.gold, p.weapon_level) == (5, 1)


class TestHeal:
    def test_heal(self):
        core = _core_in_shop()
        p = core.get_player(1)
        p.hp = 50.0
        assert core.shop_action(1, "heal")
        assert (p.hp, p.gold) == (80.0, 92)

    def test_heal_is_capped(self):
        core = _core_in_shop()
        p = core.get_player(1)
        p.hp = 90.0
        assert core.shop_action(1, "heal")
        assert p.hp == 100.0

    def test_full_hp_rejected(self):
        core = _core_in_shop()
        assert not core.shop_action(1, "heal")
        assert core.get_player(1).gold == 100

    def test_defeated_player_cannot_heal(self):
        core = GameCore(seed=2)
        core.choose_weapon(1, "knife")
        core.choose_weapon(2, "knife")
        core.step(DT)
        p1 = core.get_player(1)
        p1.hp = 0.0
        p1.gold = 50
        core.match.wave_left = 0.01
        core.step(0.02)
        assert core.phase is Phase.SHOP

        assert not core.shop_action(1, "heal")
        assert (p1.hp, p1.gold) == (0.0, 50)

        core.step(core.config.shop_time + 1.0)
        assert core.phase is Phase.PLAYING
        core.step(DT)
        assert core.phase is Phase.GAME_OVER
        assert core.match.winner == "right"


class TestSending:
    def test_send_pack_to_opponent(self):
        core = _core_in_shop()
        assert core.shop_action(1, "send:tank")
        assert core.get_player(1).gold == 82
        assert core.match.sides["right"].queued_packs["tank"] == 1
        assert not core.match.sides["left"].queued_packs

    def test_legacy_send_names(self):
        core = _core_in_shop()
        assert core.shop_action(2, "send_mobs")
        assert core.shop_action(2, "extra_monsters")
        assert core.match.sides["left"].queued_packs["slime"] == 2
        assert core.get_player(2).gold == 76

    def test_bosses_and_unknown_kinds_are_not_packs(self):
        core = _core_in_shop()
        assert not core.shop_action(1, "send:brute")
        assert not core.shop_action(1, "send:dragon")
        assert core.get_player(1).gold == 100

    def test_send_boss(self):
        core = _core_in_shop()
        assert core.shop_action(1, "send_boss")
        assert core.get_player(1).gold == 40
        assert core.match.sides["right"].queued_bosses == 1

    def test_grenade_cap_per_shop(self):
        core = _core_in_shop()
        assert core.shop_action(1, "send_grenade")
        assert core.shop_action(1, "send_grenade")
        assert not core.shop_action(1, "send_grenade")
        assert core.get_player(1).gold == 70
        assert core.match.sides["right"].queued_grenades == [1, 1]

    def test_grenade_cap_resets_next_shop(self):
        core = _core_in_shop()
        core.shop_action(1, "send_grenade")
        core.shop_action(1, "send_grenade")
        core.ready(1)
        core.ready(2)
        core.step(DT)
        assert len(core.match.grenades) == 2
        core.match.wave_left = 0.01
        core.step(0.02)
        assert core.phase is Phase.SHOP
        assert core.get_player(1).grenades_bought == 0
        assert core.shop_action(1, "send_grenade")

    def test_queued_packs_arrive_next_wave(self):
        core = _core_in_shop()
        core.shop_action(1, "send:fast")
        core.ready(1)
        core.ready(2)
        core.step(DT)
        assert core.match.sides["right"].reinforcement_plan == ["fast"] * 4


class TestShopRules:
    def test_ignored_outside_shop(self):
        core = GameCore(seed=2)
        core.get_player(1).gold = 100
        assert not core.shop_action(1, "send_boss")
        assert core.get_player(1).gold == 100

    def test_unknown_or_malformed_actions(self):
        core = _core_in_shop()
        for action in ("buy_tank", "", None, 7, {"a": 1}):
            assert not core.shop_action(1, action)
        assert core.get_player(1).gold == 100

    def test_unknown_player(self):
        core = _core_in_shop()
        assert not core.shop_action(9, "heal")

    def test_start_round_alias_marks_ready(self):
        core = _core_in_shop()
        assert core.shop_action(2, "start_round")
        assert core.match.sides["right"].ready

    def test_purchase_event(self):
        core = _core_in_shop()
        events = []
        core.events.on(PurchaseMade, events.append)
        core.shop_action(1, "send_boss")
        assert events == [PurchaseMade(player_id=1, action="send_boss", cost=60)]

    def test_gold_is_conserved(self):
        core = _core_in_shop(gold=75)
        spent = []
        core.events.on(PurchaseMade, lambda e: spent.append(e.cost))
        core.get_player(1).hp = 20.0
        rng = random.Random(9)
        actions = ["upgrade_weapon", "heal", "send:slime", "send:spitter",
                   "send_boss", "send_grenade", "bogus"]
        for _ in range(200):
            core.shop_action(1, rng.choice(actions))
            assert core.get_player(1).gold >= 0
        assert core.get_player(1).gold == 75 - sum(spent)
