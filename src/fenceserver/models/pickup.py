"""Pickup models — loot dropped by killed monsters."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class GoldDrop:
    gid: int
    x: float
    y: float
    amount: int
    taken: bool = False


@dataclass
class HeartPickup:
    hid: int
    x: float
    y: float
    heal_amount: float
    taken: bool = False


@dataclass
class BuffPotion:
    """Potion granting a temporary damage and attack-speed multiplier."""

    pid: int
    x: float
    y: float
    duration: float
    damage_mult: float = 1.5
    attack_speed_mult: float = 1.5
    taken: bool = False
