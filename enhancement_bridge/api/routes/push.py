"""
Push channel status, diagnostics and the UI status socket.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, WebSocket

from enhancement_bridge.api.deps import get_connection_manager, get_push_clients
from enhancement_bridge.core.config import settings
from enhancement_bridge.core.constants import WS_STATUS_PATH, ConnectionState, Variant
from enhancement_bridge.jira.fetcher import resolve_variant
from enhancement_bridge.push.broadcaster import ConnectionManager, status_websocket
from enhancement_bridge.push.diagnostics import diagnose_connection
from enhancement_bridge.push.event_stream import EventStreamClient, get_push_channel_url

router = APIRouter()
ws_router = APIRouter()


@router.get("/diagnose-mcp")
async def diagnose_mcp(
    project_key: Optional[str] = Query(default=None, alias="projectKey"),
) -> dict[str, Any]:
    """Run connectivity checks against the push channel URL."""
    url = get_push_channel_url(project_key, settings.push, settings.workflow)
    results = await diagnose_connection(url)
    return {"status": "ok" if not results["errors"] else "error", "results": results}


@router.get("/mcp-status")
async def mcp_status(
    project_key: Optional[str] = Query(default=None, alias="projectKey"),
    push_clients: dict[Variant, EventStreamClient] = Depends(get_push_clients),
) -> dict[str, Any]:
    """Report whether the push channel for a project is connected."""
    url = get_push_channel_url(project_key, settings.push, settings.workflow)
    client = push_clients.get(resolve_variant("", project_key, settings.workflow))
    state = client.state if client is not None else ConnectionState.DISCONNECTED
    return {"connected": state == ConnectionState.CONNECTED, "url": url, "state": state.value}


@ws_router.websocket(WS_STATUS_PATH)
async def status_socket(
    websocket: WebSocket,
    manager: ConnectionManager = Depends(get_connection_manager),
) -> None:
    """Stream pipeline progress and push channel events to the UI."""
    await status_websocket(websocket, manager)
