"""Message router — dispatches incoming messages to handlers.

Routes messages by type to the matching handler. Handlers are async
callables that receive the parsed message and the sender's player id.
They may return an optional response dict that should be sent back to
the sender.

Spectators (player id 0) may watch but never control the match: a
handler registered with ``players_only=True`` (the default) is never
called for them.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Awaitable, NamedTuple, Optional

from fenceserver.models.messages import GameMessage, parse_message
from fenceserver.util.constants import PLAYER_IDS

log = logging.getLogger(__name__)

# Handler signature: async (message, sender_pid) -> optional response dict
Handler = Callable[[GameMessage, int], Awaitable[Optional[dict[str, Any]]]]


class _Route(NamedTuple):
    handler: Handler
    players_only: bool


class Router:
    """Message dispatcher.

    Register handlers for message types, then call route() with raw dicts.
    Handlers may return a response dict to be sent back to the caller.
    """

    def __init__(self) -> None:
        self._routes: dict[str, _Route] = {}

    def register(self, msg_type: str, handler: Handler, players_only: bool = True) -> None:
        """Register a handler for a message type.

        Args:
            msg_type: The message type string (e.g. ``"shop_action"``).
            handler: Async callable ``(message, sender_pid) -> dict | None``.
            players_only: Skip the handler for spectators.
        """
        self._routes[msg_type] = _Route(handler, players_only)
        log.debug("Handler registered: %s", msg_type)

    @property
    def registered_types(self) -> list[str]:
        """List of all message types that have a handler."""
        return list(self._routes.keys())

    async def route(self, raw: dict[str, Any], sender_pid: int) -> Optional[dict[str, Any]]:
        """Parse and dispatch a raw message dict.

        Args:
            raw: Raw JSON-decoded message dictionary.
            sender_pid: Player slot of the sending client (0 = spectator).

        Returns:
            Response dict from the handler, or None if there is no
            handler, the sender may not use it, or the handler returned
            nothing.

        Raises:
            pydantic.ValidationError: If the payload does not match the
                model registered for its type.
        """
        message = parse_message(raw)
        route = self._routes.get(message.type)
        if route is None:
            log.debug("No handler for message type: %s", message.type)
            return None
        if route.players_only and sender_pid not in PLAYER_IDS:
            log.debug("Ignoring %s from spectator", message.type)
            return None
        return await route.handler(message, sender_pid)
