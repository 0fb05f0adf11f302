"""Main game loop — asyncio-based fixed-rate tick.

Responsibilities per tick:
- Sample the input buffer (only while PLAYING; other phases get no input)
- Step the game core by one fixed timestep
- Broadcast the exported snapshot to every client
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TYPE_CHECKING

from fenceserver.models.match import Phase
from fenceserver.models.messages import StateMessage

if TYPE_CHECKING:
    from fenceserver.engine.game_core import GameCore
    from fenceserver.network.input_buffer import InputBuffer

log = logging.getLogger(__name__)

Broadcast = Callable[[dict[str, Any]], Awaitable[Any]]


class GameLoop:
    """The central fixed-timestep game loop.

    Args:
        core: The simulation core to advance.
        input_buffer: Source of per-player movement intents.
        broadcast: Async callable receiving each ``state`` message.
        tick_rate: Ticks per second.
    """

    def __init__(
        self,
        core: GameCore,
        input_buffer: InputBuffer,
        broadcast: Optional[Broadcast] = None,
        tick_rate: int = 60,
    ) -> None:
        self._core = core
        self._inputs = input_buffer
        self._broadcast = broadcast
        self._running = False
        self._step_interval = 1.0 / max(1, tick_rate)

        # --- Monitoring counters ---
        self.tick_count: int = 0
        self.failed_ticks: int = 0
        self.started_at: float = 0.0
        self.last_tick_duration_ms: float = 0.0
        self.avg_tick_duration_ms: float = 0.0
        self._tick_duration_sum: float = 0.0

    async def run(self) -> None:
        """Start the game loop. Runs until stop() is called."""
        self._running = True
        self.started_at = time.monotonic()
        next_tick = self.started_at
        while self._running:
            t0 = time.monotonic()
            await self.tick()
            elapsed = time.monotonic() - t0

            self.tick_count += 1
            self.last_tick_duration_ms = elapsed * 1000
            self._tick_duration_sum += self.last_tick_duration_ms
            self.avg_tick_duration_ms = self._tick_duration_sum / self.tick_count

            next_tick += self._step_interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                # Fell behind; don't try to catch up with a burst of ticks.
                next_tick = time.monotonic()
                delay = 0.0
            await asyncio.sleep(delay)

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the loop started."""
        if self.started_at == 0.0:
            return 0.0
        return time.monotonic() - self.started_at

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Signal the game loop to stop."""
        self._running = False

    async def tick(self) -> None:
        """One tick: sample inputs, step the core, broadcast the state.

        A failing step is logged and skipped; the loop keeps running.
        """
        core = self._core
        inputs = self._inputs.snapshot() if core.phase is Phase.PLAYING else {}
        try:
            core.step(self._step_interval, inputs)
        except Exception:
            self.failed_ticks += 1
            log.exception("Game tick failed (phase=%s)", core.phase.value)
        if self._broadcast is not None:
            await self._broadcast(StateMessage(state=core.export_state()).model_dump())
