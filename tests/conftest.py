"""Pytest configuration and fixtures."""

from __future__ import annotations

import inspect
import os
from collections import defaultdict
from typing import Any, Generator, Optional

import pytest

from dictate_panel.events import EventStream
from dictate_panel.gateway import Command, CommandError, CommandGateway

_MISSING = object()


class ScriptedGateway(CommandGateway):
    """
    Gateway answering from a table of canned responses.

    A response may be a value, an exception to raise, or a callable taking
    the request payload (sync or async) that returns either of those.
    """

    def __init__(self, responses: Optional[dict[str, Any]] = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, Optional[dict[str, Any]]]] = []
        self.closed = False

    async def invoke(self, command: str, payload: Optional[dict[str, Any]] = None) -> Any:
        name = command.value if isinstance(command, Command) else command
        self.calls.append((name, payload))

        response = self.responses.get(name, _MISSING)
        if response is _MISSING:
            raise CommandError(f"Unexpected invoke: {name}")
        if callable(response) and not isinstance(response, Exception):
            response = response(payload)
        if inspect.isawaitable(response):
            response = await response
        if isinstance(response, Exception):
            raise response
        return response

    async def aclose(self) -> None:
        self.closed = True

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeEventStream(EventStream):
    """In-memory event stream; ``emit`` delivers like the backend would."""

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.handlers: dict[str, list] = defaultdict(list)
        self.fail_on = set(fail_on)
        self.closed = False

    async def subscribe(self, event, handler):
        if event in self.fail_on:
            raise ConnectionError(f"cannot listen to {event}")
        self.handlers[event].append(handler)

        def unsubscribe() -> None:
            self.handlers[event].remove(handler)

        return unsubscribe

    def emit(self, event: str, payload: Any) -> None:
        for handler in list(self.handlers[event]):
            handler(payload)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def base_config() -> dict[str, Any]:
    """Configuration payload as the backend sends it."""
    return {
        "azure": {
            "endpoint": "",
            "deployment": "",
            "apiVersion": "2025-03-01-preview",
            "apiKey": "",
        },
        "hotkey": {"windows": "Ctrl"},
        "thresholds": {"holdMs": 180, "doubleClickMs": 300},
        "recording": {"maxSeconds": 120},
        "insert": {"restoreClipboard": False, "postfix": "none"},
    }


@pytest.fixture
def base_responses(base_config: dict[str, Any]) -> dict[str, Any]:
    """Responses for a healthy backend."""
    return {
        "get_config": base_config,
        "check_api_key": {"present": True},
        "get_status": {"state": "Idle", "lastError": None},
        "get_autostart_enabled": False,
        "set_autostart_enabled": None,
        "set_config": None,
        "reset_config": base_config,
        "toggle_recording": None,
        "test_transcription": "hello world",
    }


@pytest.fixture
def gateway(base_responses: dict[str, Any]) -> ScriptedGateway:
    return ScriptedGateway(base_responses)


@pytest.fixture
def event_stream() -> FakeEventStream:
    return FakeEventStream()


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Fixture to clean environment variables before/after tests."""
    env_vars = [
        "DICTATE_PANEL_BACKEND_URL",
        "DICTATE_PANEL_EVENTS_URL",
        "DICTATE_PANEL_TIMEOUT",
        "DICTATE_PANEL_DISCARD_STALE",
        "DICTATE_PANEL_VERBOSE",
        "AZURE_OPENAI_API_KEY",
    ]
    original_values = {var: os.environ.get(var) for var in env_vars}

    for var in env_vars:
        os.environ.pop(var, None)

    yield

    for var, value in original_values.items():
        if value is not None:
            os.environ[var] = value
        else:
            os.environ.pop(var, None)
