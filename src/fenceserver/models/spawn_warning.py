"""Spawn warning model — the telegraph preceding a monster.

Renderers blink the warning; the engine converts it into a Monster at
the same position once ``timer`` reaches zero.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SpawnWarning:
    """A pending monster spawn.

    Attributes:
        wid: Unique warning id.
        side: Half of the arena the monster will appear on.
        kind: Archetype tag of the monster to spawn.
        round: Round whose scaling applies to the monster.
        x, y: Spawn position.
        duration: Total telegraph time.
        timer: Remaining telegraph time.
    """

    wid: int
    side: str
    kind: str
    round: int
    x: float
    y: float
    duration: float
    timer: float

    @property
    def expired(self) -> bool:
        return self.timer <= 0
