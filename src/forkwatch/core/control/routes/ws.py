"""
Push channel.

- WS /ws - live unit snapshots and mutation commands

On connect the server sends an ``ack`` and a ``units_snapshot``. Every
client message is answered with ``ack`` or ``error`` on the same
connection; changes made by anyone are pushed as ``unit_changed`` followed
by ``units_snapshot``.
"""

import json
import logging
from functools import partial

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from forkwatch.core.control import protocol
from forkwatch.core.control.commands import CommandDispatcher
from forkwatch.core.control.hub import SubscriberHub
from forkwatch.core.errors import ValidationError
from forkwatch.core.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def push_channel(websocket: WebSocket) -> None:
    state = websocket.app.state
    hub: SubscriberHub = state.hub
    dispatcher: CommandDispatcher = state.dispatcher
    orchestrator: SyncOrchestrator = state.orchestrator

    await websocket.accept()
    subscriber = await hub.connect(websocket.send_json)
    hub.send(subscriber, protocol.ack("Connected to forkwatch"))
    hub.send(subscriber, protocol.units_snapshot(await orchestrator.snapshot()))

    try:
        while True:
            text = await websocket.receive_text()
            try:
                raw = json.loads(text)
            except json.JSONDecodeError:
                hub.send(subscriber, protocol.error("Invalid JSON", ValidationError.code))
                continue
            await dispatcher.handle_raw(raw, partial(hub.send, subscriber))
    except WebSocketDisconnect:
        logger.debug("Subscriber %d closed the connection", subscriber.id)
    finally:
        await hub.disconnect(subscriber)
