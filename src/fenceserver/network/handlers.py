"""Message handlers — central registry of all message type handlers.

Each handler is an async function that receives a parsed GameMessage
and the sender's player id, and returns an optional response dict.

The handler signature is::

    async def handle_xyz(message: GameMessage, sender_pid: int) -> dict | None:
        ...

Returning a dict sends it back to the sender as a JSON response.
Returning None means no response to the sender (fire-and-forget).
All match handlers are registered players-only, so they never see
spectators.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TYPE_CHECKING

from fenceserver.models.messages import GameMessage

if TYPE_CHECKING:
    from fenceserver.main import Services

log = logging.getLogger(__name__)

# Module-level reference set by register_all_handlers()
_services: Optional[Services] = None


def _svc() -> Services:
    """Get the Services container. Raises if not initialized."""
    assert _services is not None, "handlers: services not initialized"
    return _services


# ===================================================================
# Movement
# ===================================================================

async def handle_input(
    message: GameMessage, sender_pid: int,
) -> Optional[dict[str, Any]]:
    """Handle ``input``: remember the sender's held direction keys."""
    keys = getattr(message, "keys", None)
    _svc().input_buffer.update(sender_pid, keys.model_dump() if keys is not None else None)
    return None


# ===================================================================
# Match actions
# ===================================================================

async def handle_weapon_select(
    message: GameMessage, sender_pid: int,
) -> Optional[dict[str, Any]]:
    """Handle ``weapon_select``: register the sender's weapon choice."""
    _svc().core.choose_weapon(sender_pid, getattr(message, "weapon_type", None))
    return None


async def handle_shop_action(
    message: GameMessage, sender_pid: int,
) -> Optional[dict[str, Any]]:
    """Handle ``shop_action``: upgrade, heal, or send trouble across the fence."""
    _svc().core.shop_action(sender_pid, getattr(message, "action", ""))
    return None


async def handle_ready(
    message: GameMessage, sender_pid: int,
) -> Optional[dict[str, Any]]:
    _svc().core.ready(sender_pid)
    return None


async def handle_restart(
    message: GameMessage, sender_pid: int,
) -> Optional[dict[str, Any]]:
    """Handle ``restart``: start over from weapon select after GAME_OVER.

    Held keys from the finished match are dropped so nobody starts the
    next match already moving.
    """
    svc = _svc()
    if svc.core.restart():
        svc.input_buffer.clear()
    return None


# ===================================================================
# Registration — THE central place to add all handlers
# ===================================================================

def register_all_handlers(services: Services) -> None:
    """Register all message handlers on the router.

    Called once during startup from ``main.py``.

    Args:
        services: Fully initialized Services container.
    """
    global _services
    _services = services

    router = services.router

    # -- Movement --------------------------------------------------------
    router.register("input", handle_input)

    # -- Match actions (fire-and-forget) ---------------------------------
    router.register("weapon_select", handle_weapon_select)
    router.register("shop_action", handle_shop_action)
    router.register("ready", handle_ready)
    router.register("restart", handle_restart)

    registered = router.registered_types
    log.info("Registered %d message handlers: %s", len(registered), ", ".join(registered))
