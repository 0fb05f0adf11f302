"""Network message models.

Typed Pydantic models for all client ↔ server messages.
Each message type gets its own model with validation.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field


# -- Base ----------------------------------------------------------------

class GameMessage(BaseModel):
    """Base class for all game messages."""

    type: str


# -- Client → server -----------------------------------------------------

class InputKeys(BaseModel):
    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False


class InputMessage(GameMessage):
    type: Literal["input"] = "input"
    keys: InputKeys = Field(default_factory=InputKeys)


class WeaponSelectMessage(GameMessage):
    type: Literal["weapon_select"] = "weapon_select"
    # Older clients send camelCase.
    weapon_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("weapon_type", "weaponType"))


class ShopActionMessage(GameMessage):
    type: Literal["shop_action"] = "shop_action"
    action: str = ""


class ReadyMessage(GameMessage):
    type: Literal["ready"] = "ready"


class RestartMessage(GameMessage):
    type: Literal["restart"] = "restart"


# -- Server → client -----------------------------------------------------

class WelcomeMessage(GameMessage):
    type: Literal["welcome"] = "welcome"
    player_id: int = 0


class StateMessage(GameMessage):
    type: Literal["state"] = "state"
    state: dict[str, Any] = {}


class ErrorMessage(GameMessage):
    type: Literal["error"] = "error"
    message: str = ""


# -- Registry ------------------------------------------------------------

MESSAGE_TYPES: dict[str, type[GameMessage]] = {
    "input": InputMessage,
    "weapon_select": WeaponSelectMessage,
    "shop_action": ShopActionMessage,
    "ready": ReadyMessage,
    "restart": RestartMessage,
    "welcome": WelcomeMessage,
    "state": StateMessage,
    "error": ErrorMessage,
}


def parse_message(data: dict[str, Any]) -> GameMessage:
    """Parse a raw dict into the appropriate typed message model."""
    msg_type = data.get("type", "")
    model_cls = MESSAGE_TYPES.get(msg_type, GameMessage)
    return model_cls.model_validate(data)
