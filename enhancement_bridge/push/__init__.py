"""
Push channel: UI status broadcasting and upstream event streams.
"""

from enhancement_bridge.push.broadcaster import ConnectionManager, StatusBroadcaster, WSMessage, WSMessageType
from enhancement_bridge.push.diagnostics import diagnose_connection
from enhancement_bridge.push.event_stream import EventStreamClient, get_push_channel_url

__all__ = [
    "ConnectionManager",
    "StatusBroadcaster",
    "WSMessage",
    "WSMessageType",
    "EventStreamClient",
    "get_push_channel_url",
    "diagnose_connection",
]
