"""Agent backends served by the bridge server."""

from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from dictate_panel.config import Config
from dictate_panel.gateway import CommandError
from dictate_panel.status import RECORDING_STATE, SessionStatus
from dictate_panel.types import EventMessage, EventName

logger = logging.getLogger(__name__)

API_KEY_ENV = "AZURE_OPENAI_API_KEY"
IDLE_STATE = "Idle"

Transcriber = Callable[[], Awaitable[str]]


class EventHub:
    """Fans events out to every connected WebSocket client."""

    def __init__(self) -> None:
        self._queues: set[asyncio.Queue[EventMessage]] = set()

    def register(self) -> asyncio.Queue[EventMessage]:
        queue: asyncio.Queue[EventMessage] = asyncio.Queue()
        self._queues.add(queue)
        return queue

    def unregister(self, queue: asyncio.Queue[EventMessage]) -> None:
        self._queues.discard(queue)

    @property
    def listeners(self) -> int:
        return len(self._queues)

    def publish(self, event: EventName, payload: Any) -> None:
        message: EventMessage = {"event": event, "payload": payload}
        for queue in list(self._queues):
            queue.put_nowait(message)


class AgentBackend(ABC):
    """The command surface of a dictation agent."""

    def __init__(self, hub: EventHub | None = None) -> None:
        self.hub = hub or EventHub()

    @abstractmethod
    async def get_config(self) -> Config: ...

    @abstractmethod
    async def set_config(self, config: Config) -> None: ...

    @abstractmethod
    async def reset_config(self) -> Config: ...

    @abstractmethod
    async def check_api_key(self) -> bool: ...

    @abstractmethod
    async def get_status(self) -> SessionStatus: ...

    @abstractmethod
    async def get_autostart_enabled(self) -> bool: ...

    @abstractmethod
    async def set_autostart_enabled(self, enabled: bool) -> None: ...

    @abstractmethod
    async def toggle_recording(self) -> None: ...

    @abstractmethod
    async def test_transcription(self) -> str: ...


class InMemoryAgent(AgentBackend):
    """
    Agent stand-in that keeps everything in memory.

    Useful for running the panel without the real agent. Recording only
    flips the reported state; transcription needs a ``transcriber``.
    """

    def __init__(
        self,
        hub: EventHub | None = None,
        *,
        config: Config | None = None,
        transcriber: Optional[Transcriber] = None,
    ) -> None:
        super().__init__(hub)
        self._config = config or Config()
        self._status = SessionStatus(state=IDLE_STATE)
        self._autostart = False
        self._transcriber = transcriber

    async def get_config(self) -> Config:
        return self._config

    async def set_config(self, config: Config) -> None:
        if config.recording.max_seconds < 1:
            raise CommandError("recording.maxSeconds must be at least 1")
        for name, value in (
            ("thresholds.holdMs", config.thresholds.hold_ms),
            ("thresholds.doubleClickMs", config.thresholds.double_click_ms),
        ):
            if value < 0:
                raise CommandError(f"{name} must not be negative")
        self._config = config
        logger.info("Configuration updated")

    async def reset_config(self) -> Config:
        return Config()

    async def check_api_key(self) -> bool:
        return bool(os.environ.get(API_KEY_ENV, "").strip())

    async def get_status(self) -> SessionStatus:
        return self._status

    async def get_autostart_enabled(self) -> bool:
        return self._autostart

    async def set_autostart_enabled(self, enabled: bool) -> None:
        self._autostart = enabled

    async def toggle_recording(self) -> None:
        state = IDLE_STATE if self._status.state == RECORDING_STATE else RECORDING_STATE
        self._set_status(SessionStatus(state=state))

    async def test_transcription(self) -> str:
        if self._transcriber is None:
            message = "transcription is not configured"
            self.hub.publish("error", message)
            raise CommandError(message)
        try:
            return await self._transcriber()
        except CommandError as e:
            self.hub.publish("error", str(e))
            raise

    def _set_status(self, status: SessionStatus) -> None:
        self._status = status
        logger.info("Agent state: %s", status.state)
        self.hub.publish("status_changed", status.to_dict())
