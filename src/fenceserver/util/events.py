"""Typed event bus — decoupled notification of match happenings.

The simulation core emits these events synchronously from inside a
tick; the host wires handlers for logging and statistics.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, TypeVar, Type

T = TypeVar("T")


# -- Match events --------------------------------------------------------

@dataclass(frozen=True)
class PhaseChanged:
    """The match moved from one phase to another."""
    old_phase: str
    new_phase: str
    round: int


@dataclass(frozen=True)
class MatchFinished:
    """The match reached GAME_OVER."""
    winner: str
    round: int


@dataclass(frozen=True)
class PlayerDefeated:
    """A player's hp reached zero."""
    player_id: int


# -- Entity events -------------------------------------------------------

@dataclass(frozen=True)
class MonsterSpawned:
    """A spawn warning expired and its monster materialised."""
    monster_id: int
    side: str
    kind: str


@dataclass(frozen=True)
class MonsterKilled:
    """A monster was killed by a player's bullet."""
    monster_id: int
    killer_id: int
    kind: str


# -- Economy events ------------------------------------------------------

@dataclass(frozen=True)
class PurchaseMade:
    """A shop purchase succeeded."""
    player_id: int
    action: str
    cost: int


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(MonsterKilled, lambda e: print(e.monster_id))
        bus.emit(MonsterKilled(monster_id=42, killer_id=1, kind="slime"))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in self._handlers.get(type(event), []):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
