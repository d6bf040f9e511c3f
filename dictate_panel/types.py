"""Type definitions for the Dictate panel wire contract."""

from __future__ import annotations

from typing import Any, Literal, Optional, TypedDict

EventName = Literal["status_changed", "transcript_ready", "error"]


class AzurePayload(TypedDict):
    endpoint: str
    deployment: str
    apiVersion: str


class HotkeyPayload(TypedDict):
    windows: str


class ThresholdsPayload(TypedDict):
    holdMs: int
    doubleClickMs: int


class RecordingPayload(TypedDict):
    maxSeconds: int


class InsertPayload(TypedDict):
    restoreClipboard: bool
    postfix: Literal["none"]


class ConfigPayload(TypedDict):
    """Configuration as exchanged with the backend (camelCase keys)."""

    azure: AzurePayload
    hotkey: HotkeyPayload
    thresholds: ThresholdsPayload
    recording: RecordingPayload
    insert: InsertPayload


class StatusPayload(TypedDict, total=False):
    """Session status pushed by the agent."""

    state: str
    lastError: Optional[str]


class ApiKeyStatus(TypedDict):
    present: bool


class EventMessage(TypedDict):
    """Message sent over the /ws/events WebSocket."""

    event: EventName
    payload: Any
