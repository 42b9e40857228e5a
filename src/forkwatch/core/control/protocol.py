"""
Push-channel protocol.

Every WebSocket message is a JSON envelope ``{"type": ..., "payload": {...}}``.

Server -> client types: ``ack``, ``error``, ``units_snapshot``,
``unit_changed``. Client -> server types are the six mutation commands, each
answered with ``ack`` or ``error``.
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from forkwatch.core.units.models import UnitsSnapshot


class MessageType(str, Enum):
    """Envelope types."""

    # Server -> client
    ACK = "ack"
    ERROR = "error"
    UNITS_SNAPSHOT = "units_snapshot"
    UNIT_CHANGED = "unit_changed"

    # Client -> server
    NEW_VERSION = "new_version"
    DUPLICATE_VERSION = "duplicate_version"
    DELETE_VERSION = "delete_version"
    RENAME_VERSION = "rename_version"
    RENAME_LABEL = "rename_label"
    PROMOTE_VERSION = "promote_version"


COMMAND_TYPES = frozenset(
    {
        MessageType.NEW_VERSION,
        MessageType.DUPLICATE_VERSION,
        MessageType.DELETE_VERSION,
        MessageType.RENAME_VERSION,
        MessageType.RENAME_LABEL,
        MessageType.PROMOTE_VERSION,
    }
)


class Envelope(BaseModel):
    """A message in either direction."""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


class CommandPayload(BaseModel):
    """
    Arguments of a mutation command.

    ``component`` is accepted as an alias of ``unit``; camelCase and
    snake_case spellings are both accepted for the other fields.
    """

    model_config = ConfigDict(extra="ignore")

    unit: str | None = Field(default=None, validation_alias=AliasChoices("unit", "component"))
    version: str | None = None
    new_version: str | None = Field(
        default=None, validation_alias=AliasChoices("newVersion", "new_version")
    )
    new_label: str | None = Field(
        default=None, validation_alias=AliasChoices("newLabel", "new_label")
    )


def envelope(message_type: MessageType, payload: dict[str, Any]) -> dict[str, Any]:
    return {"type": message_type.value, "payload": payload}


def ack(message: str, **data: Any) -> dict[str, Any]:
    payload = {"message": message}
    payload.update({key: value for key, value in data.items() if value is not None})
    return envelope(MessageType.ACK, payload)


def error(message: str, code: str) -> dict[str, Any]:
    return envelope(MessageType.ERROR, {"message": message, "code": code})


def units_snapshot(snapshot: UnitsSnapshot) -> dict[str, Any]:
    return envelope(MessageType.UNITS_SNAPSHOT, snapshot.model_dump(mode="json"))


def unit_changed(unit: str, message: str) -> dict[str, Any]:
    return envelope(MessageType.UNIT_CHANGED, {"unit": unit, "message": message})
