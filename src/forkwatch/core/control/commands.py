"""
Execution of push-channel mutation commands.

Each command is validated, run through the VersionService under the unit's
lock, acknowledged, and then broadcast. Errors come back as ``error``
envelopes; nothing raised by a command escapes to the connection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from forkwatch.core.control import protocol
from forkwatch.core.control.protocol import COMMAND_TYPES, CommandPayload, Envelope, MessageType
from forkwatch.core.errors import ForkwatchError, ValidationError
from forkwatch.core.services.versions import CommandResult, VersionService
from forkwatch.core.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "INTERNAL_ERROR"

Respond = Callable[[dict[str, Any]], object]


class CommandDispatcher:
    """Runs client commands against the orchestrator's units."""

    def __init__(self, orchestrator: SyncOrchestrator, service: VersionService | None = None) -> None:
        self.orchestrator = orchestrator
        self.service = service or VersionService()

    async def handle_raw(self, raw: Any, respond: Respond) -> None:
        """Handle one decoded JSON message, sending the reply through ``respond``."""
        try:
            message = Envelope.model_validate(raw)
        except PydanticValidationError:
            respond(protocol.error("Invalid message: expected {type, payload}", ValidationError.code))
            return
        await self.handle(message, respond)

    async def handle(self, message: Envelope, respond: Respond) -> None:
        """Run a command. The reply is sent before the change is broadcast."""
        if message.type not in {t.value for t in COMMAND_TYPES}:
            respond(protocol.error(f"Unknown message type: {message.type}", ValidationError.code))
            return

        command = MessageType(message.type)
        try:
            payload = CommandPayload.model_validate(message.payload)
            result = await self.execute(command, payload)
        except ForkwatchError as e:
            logger.info("%s failed: %s", command.value, e)
            respond(protocol.error(e.message, e.code))
            return
        except PydanticValidationError:
            respond(protocol.error("Invalid payload", ValidationError.code))
            return
        except Exception:
            logger.exception("Unexpected error handling %s", command.value)
            respond(protocol.error(f"Failed to {command.value.replace('_', ' ')}", INTERNAL_ERROR))
            return

        respond(protocol.ack(result.message, **self._ack_fields(command, result)))
        await self.orchestrator.broadcast(result.unit, result.message)

    async def execute(self, command: MessageType, payload: CommandPayload) -> CommandResult:
        """
        Run one command under the unit's lock.

        A promoted unit is unregistered before this returns.

        Raises:
            ForkwatchError: On validation, lookup or filesystem failure
        """
        if not payload.unit:
            raise ValidationError("Missing unit")
        manager = self.orchestrator.get_manager(payload.unit)
        service = self.service

        if command is MessageType.NEW_VERSION:
            fn, args = service.new_version, (payload.version,)
        elif command is MessageType.DUPLICATE_VERSION:
            fn, args = service.duplicate_version, (self._require(payload.version), payload.new_version)
        elif command is MessageType.DELETE_VERSION:
            fn, args = service.delete_version, (self._require(payload.version),)
        elif command is MessageType.RENAME_VERSION:
            fn, args = service.rename_version, (
                self._require(payload.version),
                self._require(payload.new_version, "newVersion"),
            )
        elif command is MessageType.RENAME_LABEL:
            if payload.new_label is None:
                raise ValidationError("Missing newLabel")
            fn, args = service.rename_label, (self._require(payload.version), payload.new_label)
        else:
            fn, args = service.promote_version, (self._require(payload.version),)

        result: CommandResult = await self.orchestrator.run_exclusive(manager.name, fn, manager, *args)
        logger.info("[%s] %s", manager.name, result.message)

        if result.unit_removed:
            self.orchestrator.remove_unit(manager.name)
        return result

    @staticmethod
    def _ack_fields(command: MessageType, result: CommandResult) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "unit": result.unit,
            "version": result.version,
            "previousVersion": result.previous_version,
            "displayVersion": result.display_version,
            "label": result.label,
            "filePath": result.file_path,
        }
        if command is MessageType.RENAME_VERSION:
            # version names the key the client sent; newVersion the one it became
            fields["version"] = result.previous_version
            fields["newVersion"] = result.version
        elif command is MessageType.RENAME_LABEL:
            fields["newLabel"] = result.label
        return fields

    @staticmethod
    def _require(value: str | None, name: str = "version") -> str:
        if not value:
            raise ValidationError(f"Missing {name}")
        return value
