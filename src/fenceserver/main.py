"""Game server entry point.

Initializes all components and starts the asyncio event loop:
1. Load configuration (config/game.yaml)
2. Create the game core, input buffer, router and WebSocket server
3. Wire event handlers
4. Start network server (WebSocket)
5. Start game loop (fixed tick rate)

Usage:
    python -m fenceserver.main
    # or via entry point:
    fenceserver [--config <path>]
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from typing import Optional

from fenceserver.engine.game_core import GameCore
from fenceserver.engine.game_loop import GameLoop
from fenceserver.loaders.game_config_loader import (
    DEFAULT_GAME_CONFIG_PATH,
    GameConfig,
    load_game_config,
)
from fenceserver.network.handlers import register_all_handlers
from fenceserver.network.input_buffer import InputBuffer
from fenceserver.network.router import Router
from fenceserver.network.server import Server
from fenceserver.util.events import EventBus, MatchFinished

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Container for all services (makes passing around easier)
# ---------------------------------------------------------------------------


@dataclass
class Services:
    """Holds references to all running components."""

    game_config: Optional[GameConfig] = None
    event_bus: Optional[EventBus] = None
    core: Optional[GameCore] = None
    input_buffer: Optional[InputBuffer] = None
    router: Optional[Router] = None
    server: Optional[Server] = None
    game_loop: Optional[GameLoop] = None


# ===================================================================
# 1. Create services
# ===================================================================


def create_services(gc: GameConfig) -> Services:
    """Instantiate all components with proper dependency injection.

    Wiring order matters: components that are injected into others are
    created first.

    Args:
        gc: Loaded game configuration.

    Returns:
        Populated :class:`Services` container.
    """
    log.info("Creating services …")

    event_bus = EventBus()
    core = GameCore(gc, event_bus=event_bus)
    input_buffer = InputBuffer(stale_after=gc.input_stale_after_s)
    router = Router()

    def _on_disconnect(pid: int) -> None:
        input_buffer.clear(pid)
        core.handle_disconnect(pid)

    server = Server(
        router,
        host=gc.ws_host,
        port=gc.ws_port,
        ping_interval=gc.ws_ping_interval,
        ping_timeout=gc.ws_ping_timeout,
        max_size=gc.ws_max_message_size,
        on_disconnect=_on_disconnect,
    )
    game_loop = GameLoop(core, input_buffer, broadcast=server.broadcast_all, tick_rate=gc.tick_rate)

    log.info("  all services created")

    return Services(
        game_config=gc,
        event_bus=event_bus,
        core=core,
        input_buffer=input_buffer,
        router=router,
        server=server,
        game_loop=game_loop,
    )


# ===================================================================
# 2. Wire up event handlers
# ===================================================================


def wire_events(services: Services) -> None:
    """Register event handlers on the EventBus.

    Args:
        services: All instantiated services.
    """
    log.info("Wiring event handlers …")
    bus = services.event_bus

    def _on_match_finished(evt: MatchFinished) -> None:
        core = services.core
        scores = ", ".join(
            "P%d %d pts / %d kills" % (p.pid, p.score, p.monsters_killed)
            for p in core.match.players.values()
        )
        log.info("[RESULT] Winner: %s after round %d (%s)", evt.winner, evt.round, scores)

    bus.on(MatchFinished, _on_match_finished)

    log.info("  event handlers registered")


# ===================================================================
# 3. Start network server
# ===================================================================


async def start_network(services: Services) -> None:
    """Start the WebSocket server so clients can connect.

    Message handlers are registered on the router before the server
    begins accepting connections.

    Args:
        services: All instantiated services.
    """
    log.info("Starting network server …")

    # Register all message handlers on the router
    register_all_handlers(services)

    await services.server.start()


# ===================================================================
# 4. Start game loop
# ===================================================================


async def start_game_loop(services: Services) -> None:
    """Run the game loop until a shutdown signal is received.

    Args:
        services: All instantiated services.
    """
    log.info("Starting game loop …")
    loop = asyncio.get_running_loop()

    # Graceful shutdown on SIGINT / SIGTERM
    def _request_shutdown() -> None:
        log.info("Shutdown signal received — stopping …")
        services.game_loop.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_shutdown)

    log.info("  game loop running (%d ticks/s)", services.game_config.tick_rate)
    await services.game_loop.run()

    # --- Cleanup after loop exits ---
    log.info("Shutting down …")
    if services.server is not None:
        await services.server.stop()
    log.info("  goodbye")


# ===================================================================
# Entry points
# ===================================================================


async def _start(config_path: str = DEFAULT_GAME_CONFIG_PATH) -> None:
    """Initialize and run all server components.

    Args:
        config_path: Path to the game configuration YAML.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== Fence Fighters server starting ===")

    # 1. Load configuration
    gc = load_game_config(config_path)

    # 2. Create services
    services = create_services(gc)

    # 3. Wire event handlers
    wire_events(services)

    # 4. Start network
    await start_network(services)

    # 5. Start game loop (blocks until shutdown)
    await start_game_loop(services)


def main() -> None:
    """Entry point for the game server.

    Supports command-line arguments:
        --config <path>  Use a custom game config (default: config/game.yaml)
    """
    config_path = DEFAULT_GAME_CONFIG_PATH

    if "--config" in sys.argv:
        idx = sys.argv.index("--config")
        if idx + 1 >= len(sys.argv):
            print("Error: --config requires an argument", file=sys.stderr)
            sys.exit(1)
        config_path = sys.argv[idx + 1]

    asyncio.run(_start(config_path=config_path))


if __name__ == "__main__":
    main()
