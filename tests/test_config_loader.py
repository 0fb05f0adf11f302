"""Tests for the YAML game configuration loader."""

import logging
import textwrap

import pytest

from fenceserver.loaders.game_config_loader import GameConfig, load_game_config


def _write(tmp_path, body: str):
    path = tmp_path / "game.yaml"
    path.write_text(textwrap.dedent(body))
    return str(path)


class TestDefaults:
    def test_defaults(self):
        cfg = GameConfig()
        assert (cfg.arena_width, cfg.arena_height) == (1000.0, 600.0)
        assert cfg.wave_time == 30.0
        assert cfg.shop_time == 18.0
        assert cfg.max_monsters == 26
        assert set(cfg.weapons) == {"knife", "axe", "spear", "bow"}
        assert cfg.weapons["spear"].pierce == 999

    def test_archetype_lookup(self):
        cfg = GameConfig()
        assert cfg.archetype("spitter").ranged
        assert cfg.archetype("dragon") is None
        assert cfg.boss_kind_for_tier(2) == "warlord"
        assert cfg.boss_kind_for_tier(9) is None
        assert cfg.max_boss_tier == 3

    def test_instances_do_not_share_tables(self):
        a, b = GameConfig(), GameConfig()
        a.weapons.pop("bow")
        assert "bow" in b.weapons


class TestLoadGameConfig:
    def test_missing_file_falls_back(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            cfg = load_game_config(str(tmp_path / "nope.yaml"))
        assert cfg == GameConfig()
        assert "using defaults" in caplog.text

    def test_empty_file(self, tmp_path):
        assert load_game_config(_write(tmp_path, "")) == GameConfig()

    def test_overrides(self, tmp_path):
        cfg = load_game_config(_write(tmp_path, """
            wave_time: 10
            max_monsters: 12
            some_future_key: true
            shop_costs:
              heal: 4
              bogus: 1
        """))
        assert cfg.wave_time == 10
        assert cfg.max_monsters == 12
        assert cfg.shop_costs.heal == 4
        assert cfg.shop_costs.send_boss == 60
        assert not hasattr(cfg, "some_future_key")

    def test_weapon_overrides(self, tmp_path):
        cfg = load_game_config(_write(tmp_path, """
            weapons:
              knife: {damage: 99}
              sling: {damage: 5, cooldown: 0.2, bullet_speed: 400, pierce: 1}
              broken: {damage: 5}
        """))
        assert cfg.weapons["knife"].damage == 99
        assert cfg.weapons["knife"].cooldown == pytest.approx(0.35)
        assert cfg.weapons["sling"].pierce == 1
        assert "broken" not in cfg.weapons
        assert "bow" in cfg.weapons

    def test_monster_overrides(self, tmp_path):
        cfg = load_game_config(_write(tmp_path, """
            monsters:
              slime: {pack_cost: 5}
              ghost: {hp_mult: 0.5, spawn_weight: 0.1, pack_cost: 9}
        """))
        assert cfg.archetype("slime").pack_cost == 5
        assert cfg.archetype("slime").radius == 18.0
        assert cfg.archetype("ghost").hp_mult == 0.5
        assert cfg.archetype("tank").pack_cost == 18

    def test_repository_config_matches_defaults(self):
        from pathlib import Path

        path = Path(__file__).resolve().parent.parent / "config" / "game.yaml"
        cfg = load_game_config(str(path))
        assert cfg == GameConfig()
