"""Tests for the WebSocket server's slot handling and message flow."""

import json

import pytest

from fenceserver.engine.game_core import GameCore
from fenceserver.models.match import Phase
from fenceserver.network.router import Router
from fenceserver.network.server import Server


class _FakeWS:
    """Minimal stand-in for a websockets ServerConnection."""

    def __init__(self, messages=()):
        self.sent: list[dict] = []
        self.remote_address = ("127.0.0.1", 50000)
        self._messages = list(messages)

    async def send(self, raw: str) -> None:
        self.sent.append(json.loads(raw))

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for message in self._messages:
            yield message


class TestSlots:
    def test_assigns_players_then_spectators(self):
        server = Server(Router())
        a, b, c = _FakeWS(), _FakeWS(), _FakeWS()
        assert [server.assign_slot(ws) for ws in (a, b, c)] == [1, 2, 0]
        assert server.connected_players == [1, 2]
        assert server.connection_count == 3

    def test_released_slot_is_reused(self):
        server = Server(Router())
        a, b = _FakeWS(), _FakeWS()
        server.assign_slot(a)
        server.assign_slot(b)
        assert server.release_slot(a) == 1
        assert server.assign_slot(_FakeWS()) == 1


class TestMessages:
    @pytest.mark.asyncio
    async def test_invalid_json_gets_error(self):
        server = Server(Router())
        ws = _FakeWS()
        server.assign_slot(ws)
        await server._handle_message(ws, "{not json")
        assert ws.sent[0]["type"] == "error"

    @pytest.mark.asyncio
    async def test_non_object_gets_error(self):
        server = Server(Router())
        ws = _FakeWS()
        server.assign_slot(ws)
        await server._handle_message(ws, b"[1, 2]")
        assert ws.sent[0]["type"] == "error"

    @pytest.mark.asyncio
    async def test_malformed_payload_is_dropped(self):
        router = Router()
        called = []

        async def handler(message, sender_pid):
            called.append(message)

        router.register("shop_action", handler)
        server = Server(router)
        ws = _FakeWS()
        server.assign_slot(ws)
        await server._handle_message(ws, json.dumps({"type": "shop_action", "action": ["heal"]}))
        assert ws.sent == []
        assert called == []

    @pytest.mark.asyncio
    async def test_handler_failure_is_reported(self):
        router = Router()

        async def broken(message, sender_pid):
            raise RuntimeError("boom")

        router.register("ready", broken)
        server = Server(router)
        ws = _FakeWS()
        server.assign_slot(ws)
        await server._handle_message(ws, json.dumps({"type": "ready"}))
        assert ws.sent == [{"type": "error", "message": "boom"}]

    @pytest.mark.asyncio
    async def test_response_sent_back(self):
        router = Router()

        async def echo(message, sender_pid):
            return {"type": "echo", "pid": sender_pid}

        router.register("ready", echo)
        server = Server(router)
        ws = _FakeWS()
        server.assign_slot(ws)
        server.assign_slot(_FakeWS())
        await server._handle_message(ws, json.dumps({"type": "ready"}))
        assert ws.sent == [{"type": "echo", "pid": 1}]

    @pytest.mark.asyncio
    async def test_broadcast_all(self):
        server = Server(Router())
        a, b = _FakeWS(), _FakeWS()
        server.assign_slot(a)
        server.assign_slot(b)
        assert await server.broadcast_all({"type": "state", "state": {}}) == 2
        assert a.sent == b.sent == [{"type": "state", "state": {}}]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_welcome_and_disconnect_callback(self):
        disconnected = []
        server = Server(Router(), on_disconnect=disconnected.append)
        ws = _FakeWS()
        await server._on_connect(ws)
        assert ws.sent[0] == {"type": "welcome", "player_id": 1}
        assert disconnected == [1]
        assert server.connection_count == 0

    @pytest.mark.asyncio
    async def test_spectator_disconnect_is_silent(self):
        disconnected = []
        server = Server(Router(), on_disconnect=disconnected.append)
        server.assign_slot(_FakeWS())
        server.assign_slot(_FakeWS())
        ws = _FakeWS()
        await server._on_connect(ws)
        assert ws.sent[0] == {"type": "welcome", "player_id": 0}
        assert disconnected == []

    @pytest.mark.asyncio
    async def test_player_leaving_mid_wave_forfeits(self):
        core = GameCore(seed=0)
        core.choose_weapon(1, "knife")
        core.choose_weapon(2, "knife")
        core.step(1 / 60)
        server = Server(Router(), on_disconnect=core.handle_disconnect)
        server.assign_slot(_FakeWS())
        await server._on_connect(_FakeWS())
        core.step(1 / 60)
        assert core.phase is Phase.GAME_OVER
        assert core.match.winner == "left"
