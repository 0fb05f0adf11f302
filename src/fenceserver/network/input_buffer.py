"""Input buffer — last known movement intent per player slot.

Clients only send input when their keys change, so the buffer keeps the
most recent intent per player and hands the game loop one snapshot per
tick. An entry that has not been refreshed for ``stale_after`` seconds
is treated as neutral, which protects against stuck keys after a lost
key-up.
"""

from __future__ import annotations

import time
from typing import Any, Callable

from fenceserver.models.inputs import NEUTRAL, InputIntent
from fenceserver.util.constants import PLAYER_IDS


class InputBuffer:
    """Per-player input store sampled once per tick.

    Args:
        stale_after: Seconds after which an unrefreshed entry is neutral.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(self, stale_after: float = 1.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._stale_after = stale_after
        self._clock = clock
        self._entries: dict[int, tuple[InputIntent, float]] = {}

    def update(self, pid: int, keys: Any) -> None:
        """Store the latest intent for *pid* (player slots only)."""
        if pid not in PLAYER_IDS:
            return
        self._entries[pid] = (InputIntent.from_mapping(keys), self._clock())

    def clear(self, pid: int | None = None) -> None:
        """Forget one player's input, or everybody's."""
        if pid is None:
            self._entries.clear()
        else:
            self._entries.pop(pid, None)

    def snapshot(self) -> dict[int, InputIntent]:
        """Current intents for both slots; stale or missing ones are neutral."""
        now = self._clock()
        result: dict[int, InputIntent] = {}
        for pid in PLAYER_IDS:
            entry = self._entries.get(pid)
            if entry is None or now - entry[1] > self._stale_after:
                result[pid] = NEUTRAL
            else:
                result[pid] = entry[0]
        return result
