"""
WebSocket status broadcasting to UI clients.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from enhancement_bridge.core.constants import ConnectionState, PipelineStage
from enhancement_bridge.core.logging import get_logger

logger = get_logger(__name__)


class WSMessageType(str, Enum):
    """WebSocket message types."""

    # Client messages
    PING = "ping"

    # Server messages
    STATUS = "status"
    PROGRESS = "progress"
    PUSH_CHANNEL = "push_channel"
    ERROR = "error"
    PONG = "pong"


class WSMessage(BaseModel):
    """WebSocket message format."""

    type: WSMessageType
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ConnectionManager:
    """
    Manages connected UI WebSockets.
    """

    def __init__(self) -> None:
        self._connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections.append(websocket)
        logger.info("WebSocket connected", total_connections=len(self._connections))

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection."""
        if websocket in self._connections:
            self._connections.remove(websocket)
        logger.info("WebSocket disconnected", total_connections=len(self._connections))

    async def send_message(self, websocket: WebSocket, message: WSMessage) -> None:
        await websocket.send_text(message.model_dump_json())

    async def broadcast(self, message: WSMessage) -> None:
        """Send a message to every connected client."""
        message_json = message.model_dump_json()

        for websocket in list(self._connections):
            try:
                await websocket.send_text(message_json)
            except (RuntimeError, WebSocketDisconnect) as e:
                logger.warning("Failed to broadcast", error=str(e))
                await self.disconnect(websocket)


class StatusBroadcaster:
    """
    Typed helpers for pipeline progress and push-channel events.
    """

    def __init__(self, manager: Optional[ConnectionManager] = None) -> None:
        self.manager = manager or ConnectionManager()

    async def send_progress(
        self,
        ticket_id: str,
        stage: PipelineStage,
        **data: Any,
    ) -> None:
        await self.manager.broadcast(
            WSMessage(
                type=WSMessageType.PROGRESS,
                data={"ticketId": ticket_id, "stage": stage.value, **data},
            )
        )

    async def send_status(self, status: str, message: str) -> None:
        await self.manager.broadcast(
            WSMessage(type=WSMessageType.STATUS, data={"status": status, "message": message})
        )

    async def send_error(self, error: str, ticket_id: Optional[str] = None) -> None:
        await self.manager.broadcast(
            WSMessage(type=WSMessageType.ERROR, data={"error": error, "ticketId": ticket_id})
        )

    async def relay_push_event(
        self,
        name: str,
        state: ConnectionState,
        payload: Optional[dict[str, Any]] = None,
    ) -> None:
        """Listener for EventStreamClient transitions and messages."""
        data: dict[str, Any] = {"channel": name, "state": state.value}
        if payload is not None:
            data["message"] = payload
        await self.manager.broadcast(WSMessage(type=WSMessageType.PUSH_CHANNEL, data=data))


async def status_websocket(websocket: WebSocket, manager: ConnectionManager) -> None:
    """
    Serve one UI status socket: ping/pong until the client goes away.
    """
    await manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_message(
                    websocket,
                    WSMessage(type=WSMessageType.ERROR, data={"error": "Invalid JSON"}),
                )
                continue

            msg_type = message.get("type", "") if isinstance(message, dict) else ""
            if msg_type == WSMessageType.PING:
                await manager.send_message(websocket, WSMessage(type=WSMessageType.PONG))
            else:
                logger.warning("Unknown message type", type=msg_type)

    except WebSocketDisconnect:
        await manager.disconnect(websocket)
