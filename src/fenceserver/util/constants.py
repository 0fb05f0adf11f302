"""Game constants — sides, slots, wire action ids.

Tunable numbers live in GameConfig (config/game.yaml); this module only
holds values the protocol and the state machine depend on structurally.
"""

# -- Sides ---------------------------------------------------------------

SIDE_LEFT: str = "left"
SIDE_RIGHT: str = "right"
SIDES: tuple[str, str] = (SIDE_LEFT, SIDE_RIGHT)

DRAW: str = "draw"
"""Winner value when both players fall in the same tick."""

# -- Player slots --------------------------------------------------------

PLAYER_IDS: tuple[int, int] = (1, 2)
SPECTATOR_ID: int = 0

SIDE_FOR_PLAYER: dict[int, str] = {1: SIDE_LEFT, 2: SIDE_RIGHT}

# -- Shop actions --------------------------------------------------------

ACTION_UPGRADE_WEAPON = "upgrade_weapon"
ACTION_HEAL = "heal"
ACTION_SEND_PREFIX = "send:"
ACTION_SEND_BOSS = "send_boss"
ACTION_SEND_GRENADE = "send_grenade"
ACTION_READY = "ready"

ACTION_ALIASES: dict[str, str] = {
    "upgrade": ACTION_UPGRADE_WEAPON,
    "send_mobs": ACTION_SEND_PREFIX + "slime",
    "extra_monsters": ACTION_SEND_PREFIX + "slime",
    "start_round": ACTION_READY,
}
"""Legacy action names from older clients, mapped to canonical ids."""

# -- Projectile bounds ---------------------------------------------------

OUT_OF_BOUNDS_MARGIN: float = 50.0
"""Projectiles are culled once this far outside the arena."""


def opponent_side(side: str) -> str:
    """Return the other half of the arena."""
    return SIDE_RIGHT if side == SIDE_LEFT else SIDE_LEFT
