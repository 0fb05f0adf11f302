"""Per-player directional intent sampled once per tick."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class InputIntent:
    """Normalised 4-directional movement intent."""

    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False

    @property
    def vector(self) -> tuple[float, float]:
        """Un-normalised direction; screen y grows downward."""
        dx = float(self.right) - float(self.left)
        dy = float(self.down) - float(self.up)
        return dx, dy

    @classmethod
    def from_mapping(cls, raw: Any) -> InputIntent:
        """Build an intent from a loose ``{up, down, left, right}`` mapping.

        Missing or non-boolean fields count as not pressed.
        """
        if isinstance(raw, InputIntent):
            return raw
        if not isinstance(raw, Mapping):
            return NEUTRAL
        return cls(
            up=raw.get("up") is True,
            down=raw.get("down") is True,
            left=raw.get("left") is True,
            right=raw.get("right") is True,
        )


NEUTRAL = InputIntent()
