"""WebSocket front door for the match.

The first two clients to connect control the left and right fighters;
everyone after that watches. Frames are JSON objects, decoded here and
passed to the router together with the sender's slot.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, TYPE_CHECKING

import websockets
from pydantic import ValidationError
from websockets.asyncio.server import ServerConnection, Server as WSServer

from fenceserver.models.messages import ErrorMessage, GameMessage, WelcomeMessage
from fenceserver.util.constants import PLAYER_IDS, SPECTATOR_ID

if TYPE_CHECKING:
    from fenceserver.network.router import Router

log = logging.getLogger(__name__)


class Server:
    """asyncio WebSocket server with player slot tracking.

    A connection is given the lowest free player slot (1, then 2), or
    spectator slot 0 when both are taken, and told so in a ``welcome``.
    On close the slot is freed and ``on_disconnect`` is called for
    player slots.

    Args:
        router: Dispatches decoded frames to the match handlers.
        host: Bind address.
        port: Bind port.
        on_disconnect: Called with the player id when a player (not a
            spectator) disconnects.
    """

    def __init__(self, router: Router, host: str = "0.0.0.0", port: int = 3000,
                 ping_interval: int = 30, ping_timeout: int = 10,
                 max_size: int = 65_536,
                 on_disconnect: Optional[Callable[[int], None]] = None) -> None:
        self._router = router
        self._host = host
        self._port = port
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._max_size = max_size
        self._on_disconnect = on_disconnect
        self._connections: dict[int, ServerConnection] = {}  # id(ws) → ws
        self._ws_to_pid: dict[int, int] = {}  # id(ws) → player id
        self._server: Optional[WSServer] = None

    # -- Lifecycle -------------------------------------------------------

    async def start(self) -> None:
        """Start the WebSocket server."""
        self._server = await websockets.serve(
            self._on_connect,
            self._host,
            self._port,
            origins=None,
            ping_interval=self._ping_interval,
            ping_timeout=self._ping_timeout,
            max_size=self._max_size,
        )
        log.info("WebSocket server listening on ws://%s:%d", self._host, self._port)

    async def stop(self) -> None:
        """Stop the WebSocket server and close all connections."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            log.info("WebSocket server stopped")

    # -- Session management ----------------------------------------------

    def assign_slot(self, ws: ServerConnection) -> int:
        """Give *ws* the lowest free player slot, or make it a spectator."""
        taken = set(self._ws_to_pid.values())
        pid = next((p for p in PLAYER_IDS if p not in taken), SPECTATOR_ID)
        self._connections[id(ws)] = ws
        self._ws_to_pid[id(ws)] = pid
        return pid

    def release_slot(self, ws: ServerConnection) -> Optional[int]:
        """Remove a WebSocket from the session table. Returns its player id."""
        self._connections.pop(id(ws), None)
        return self._ws_to_pid.pop(id(ws), None)

    def get_pid(self, ws: ServerConnection) -> Optional[int]:
        """Look up the player id for a WebSocket connection."""
        return self._ws_to_pid.get(id(ws))

    @property
    def connected_players(self) -> list[int]:
        """Player slots currently held (spectators excluded)."""
        return sorted(pid for pid in self._ws_to_pid.values() if pid != SPECTATOR_ID)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # -- Sending ---------------------------------------------------------

    async def broadcast_all(self, data: dict[str, Any]) -> int:
        """Send *data* to players and spectators alike.

        Returns how many connections took the frame; closed ones are
        skipped.
        """
        raw = json.dumps(data, ensure_ascii=False, default=str)
        sent = 0
        for ws in list(self._connections.values()):
            try:
                await ws.send(raw)
                sent += 1
            except websockets.ConnectionClosed:
                pass
        return sent

    # -- Connection handler ----------------------------------------------

    async def _on_connect(self, ws: ServerConnection) -> None:
        """Run one client from handshake to close."""
        pid = self.assign_slot(ws)
        remote = ws.remote_address
        log.info("[CONN] pid=%d joined from %s", pid, remote)

        try:
            await self._reply(ws, WelcomeMessage(player_id=pid))
            async for raw_msg in ws:
                await self._handle_message(ws, raw_msg)
        except websockets.ConnectionClosed as e:
            log.info("[CONN] pid=%d dropped (code=%s reason=%s)",
                     pid, e.code, e.reason or "(none)")
        except Exception as e:
            log.error("[CONN] pid=%d failed: %s", pid, e)
        finally:
            removed_pid = self.release_slot(ws)
            if removed_pid in PLAYER_IDS and self._on_disconnect is not None:
                self._on_disconnect(removed_pid)
            log.info("[CONN] pid=%s left", removed_pid)

    async def _reply(self, ws: ServerConnection, message: GameMessage) -> None:
        await ws.send(message.model_dump_json())

    async def _handle_message(self, ws: ServerConnection, raw_msg: Any) -> None:
        """Decode one frame and hand it to the router.

        Frames that are not a JSON object get an ``error`` reply. A
        well-formed object whose fields fail validation is dropped
        silently; the next input frame supersedes it anyway.
        """
        pid = self.get_pid(ws) or SPECTATOR_ID

        if isinstance(raw_msg, bytes):
            raw_msg = raw_msg.decode("utf-8", errors="replace")
        try:
            data = json.loads(raw_msg)
        except json.JSONDecodeError as e:
            await self._reply(ws, ErrorMessage(message=f"Invalid JSON: {e}"))
            return
        if not isinstance(data, dict):
            await self._reply(ws, ErrorMessage(message="Message must be a JSON object"))
            return

        msg_type = data.get("type", "")
        log.debug("Received: type=%s pid=%d", msg_type, pid)

        try:
            response = await self._router.route(data, pid)
        except ValidationError as exc:
            log.debug("Dropped malformed %s from pid=%d: %s", msg_type, pid, exc)
            return
        except Exception as exc:
            log.exception("Handler error: type=%s pid=%d", msg_type, pid)
            await self._reply(ws, ErrorMessage(message=str(exc)))
            return

        if response is not None:
            await ws.send(json.dumps(response, ensure_ascii=False, default=str))
