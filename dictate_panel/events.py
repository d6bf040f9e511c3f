"""Push events from the dictation agent."""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Callable, Optional

import websockets

if TYPE_CHECKING:
    from dictate_panel.controller import PanelController

logger = logging.getLogger(__name__)

STATUS_CHANGED = "status_changed"
TRANSCRIPT_READY = "transcript_ready"
ERROR = "error"

EventHandler = Callable[[Any], None]
Unsubscribe = Callable[[], None]


class EventStream(ABC):
    """A channel of unsolicited events from the backend."""

    @abstractmethod
    async def subscribe(self, event: str, handler: EventHandler) -> Unsubscribe:
        """Register ``handler`` for ``event`` and return a function that removes it."""
        ...

    async def close(self) -> None:
        return None


class WebSocketEventStream(EventStream):
    """
    Event stream backed by the bridge server's ``/ws/events`` socket.

    One connection is shared by all subscriptions. It is opened by the first
    ``subscribe`` call; each incoming ``{"event": ..., "payload": ...}``
    message is handed to the handlers registered for that event. When the
    connection drops, the reader reconnects with exponential backoff and the
    registered handlers carry over. Only ``close`` stops it.
    """

    RETRY_BASE_DELAY_S = 0.5
    RETRY_MAX_DELAY_S = 10.0

    def __init__(self, url: str) -> None:
        self._url = url
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._connection: Optional[Any] = None
        self._reader: Optional[asyncio.Task[None]] = None
        self._connect_lock = asyncio.Lock()

    async def subscribe(self, event: str, handler: EventHandler) -> Unsubscribe:
        await self._ensure_connected()
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    async def _ensure_connected(self) -> None:
        async with self._connect_lock:
            if self._reader is not None:
                return
            logger.info("Connecting to event stream at %s", self._url)
            connection = await websockets.connect(self._url)
            self._connection = connection
            self._reader = asyncio.create_task(self._run(connection))

    async def _run(self, connection: Any) -> None:
        while True:
            await self._read_loop(connection)
            self._connection = None
            connection = await self._reconnect()
            self._connection = connection

    async def _read_loop(self, connection: Any) -> None:
        try:
            async for raw in connection:
                self.dispatch(raw)
        except websockets.ConnectionClosed as exc:
            logger.warning("Event stream closed: %s", exc)
        except OSError as exc:
            logger.warning("Event stream failed: %s", exc)
        else:
            logger.warning("Event stream ended")

    async def _reconnect(self) -> Any:
        attempt = 0
        while True:
            attempt += 1
            delay = self._retry_delay(attempt)
            if delay:
                await asyncio.sleep(delay)
            try:
                connection = await websockets.connect(self._url)
            except (OSError, asyncio.TimeoutError, websockets.WebSocketException) as exc:
                logger.warning(
                    "Reconnecting to %s failed (attempt %d): %s", self._url, attempt, exc
                )
                continue
            logger.info("Reconnected to event stream at %s", self._url)
            return connection

    def _retry_delay(self, attempt: int) -> float:
        if attempt <= 0:
            return 0.0
        delay = self.RETRY_BASE_DELAY_S * (2 ** (attempt - 1))
        return min(delay, self.RETRY_MAX_DELAY_S)

    def dispatch(self, raw: str | bytes) -> None:
        """Route one raw message to its handlers."""
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed event message: %r", raw)
            return

        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            logger.warning("Ignoring event message without a name: %r", message)
            return

        event = message["event"]
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(message.get("payload"))
            except Exception as e:
                logger.exception("Handler for %s failed: %s", event, e)

    async def close(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
        self._handlers.clear()


class EventSubscriptions:
    """The panel's three event subscriptions, set up and torn down together."""

    def __init__(self, stream: EventStream, controller: "PanelController") -> None:
        self._stream = stream
        self._controller = controller
        self._unsubscribers: list[Unsubscribe] = []

    @property
    def active(self) -> int:
        return len(self._unsubscribers)

    async def start(self) -> None:
        bindings: tuple[tuple[str, EventHandler], ...] = (
            (STATUS_CHANGED, self._controller.on_status_changed),
            (TRANSCRIPT_READY, self._controller.on_transcript_ready),
            (ERROR, self._controller.on_error),
        )
        for event, handler in bindings:
            try:
                self._unsubscribers.append(await self._stream.subscribe(event, handler))
            except Exception as e:
                # Not surfaced to the user; the panel keeps working without pushes
                logger.warning("Could not subscribe to %s: %s", event, e)

    def stop(self) -> None:
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()
