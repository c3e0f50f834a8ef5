"""
Server-Sent Events client for the push channel.

The reconnect loop is a small state machine:

    disconnected -> connecting -> connected -> disconnected -> ... -> failed

Every transition and every ``data:`` JSON message is emitted to listeners.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

import httpx

from enhancement_bridge.core.config import PushChannelSettings, WorkflowSettings
from enhancement_bridge.core.constants import ConnectionState
from enhancement_bridge.core.exceptions import PushChannelError
from enhancement_bridge.core.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[str, ConnectionState, Optional[dict[str, Any]]], Awaitable[None]]


def get_push_channel_url(
    project_key: Optional[str],
    push: PushChannelSettings,
    workflow: WorkflowSettings,
) -> Optional[str]:
    """Return the event-stream URL serving a project."""
    if project_key and project_key.upper() == workflow.story_project_key.upper():
        return push.server_url_bms
    return push.server_url


class EventStreamClient:
    """
    Consumes one event stream with bounded reconnects and a fixed backoff.
    """

    def __init__(
        self,
        name: str,
        url: str,
        max_retries: int = 5,
        retry_interval: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            name: Channel name used in emitted events
            url: Event stream URL
            max_retries: Reconnect attempts before the channel is failed
            retry_interval: Seconds between reconnect attempts
            transport: Optional httpx transport (tests)
            sleep: Backoff coroutine (tests)
        """
        self.name = name
        self.url = url
        self.max_retries = max_retries
        self.retry_interval = retry_interval
        self.state = ConnectionState.DISCONNECTED
        self.retry_count = 0
        self._transport = transport
        self._sleep = sleep
        self._listeners: list[Listener] = []
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    async def _notify(self, payload: Optional[dict[str, Any]] = None) -> None:
        for listener in self._listeners:
            try:
                await listener(self.name, self.state, payload)
            except Exception:
                logger.exception("Push channel listener failed", channel=self.name)

    async def _set_state(self, state: ConnectionState) -> None:
        if state == self.state:
            return
        logger.info("Push channel state", channel=self.name, old=self.state.value, new=state.value)
        self.state = state
        await self._notify()

    async def _dispatch(self, data_lines: list[str]) -> None:
        raw = "\n".join(data_lines)
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Unparsable push message", channel=self.name, raw=raw[:200])
            return
        if not isinstance(payload, dict):
            payload = {"data": payload}
        logger.debug("Push message", channel=self.name)
        await self._notify(payload)

    async def _consume(self) -> None:
        """Hold one connection open until the stream ends or fails."""
        try:
            httpx.URL(self.url)
        except (httpx.InvalidURL, ValueError) as e:
            raise PushChannelError(f"Invalid event stream URL: {e}", url=self.url) from e

        async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
            async with client.stream("GET", self.url, headers={"Accept": "text/event-stream"}) as response:
                response.raise_for_status()
                self.retry_count = 0
                await self._set_state(ConnectionState.CONNECTED)

                data_lines: list[str] = []
                async for line in response.aiter_lines():
                    if not line:
                        if data_lines:
                            await self._dispatch(data_lines)
                            data_lines = []
                    elif line.startswith("data:"):
                        data_lines.append(line[5:].lstrip())
                if data_lines:
                    await self._dispatch(data_lines)

    async def run(self) -> None:
        """Connect and reconnect until retries are exhausted."""
        while True:
            await self._set_state(ConnectionState.CONNECTING)
            try:
                await self._consume()
                logger.warning("Push channel stream closed", channel=self.name)
            except PushChannelError as e:
                logger.error("Push channel cannot connect", channel=self.name, error=e.message)
                await self._set_state(ConnectionState.FAILED)
                return
            except httpx.HTTPError as e:
                logger.warning("Push channel connection error", channel=self.name, error=str(e))
            except Exception:
                logger.exception("Unexpected push channel error", channel=self.name)

            await self._set_state(ConnectionState.DISCONNECTED)
            self.retry_count += 1
            if self.retry_count > self.max_retries:
                logger.error("Push channel max retries reached", channel=self.name, retries=self.max_retries)
                await self._set_state(ConnectionState.FAILED)
                return

            logger.info(
                "Push channel reconnecting",
                channel=self.name,
                attempt=self.retry_count,
                max_retries=self.max_retries,
                delay=self.retry_interval,
            )
            await self._sleep(self.retry_interval)

    def start(self) -> None:
        """Run the reconnect loop as a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name=f"push-channel-{self.name}")

    async def stop(self) -> None:
        """Cancel the background task and drop the connection."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        if self.state != ConnectionState.FAILED:
            await self._set_state(ConnectionState.DISCONNECTED)
