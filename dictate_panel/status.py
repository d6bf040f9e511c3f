"""Live session status of the dictation agent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

from dictate_panel.types import StatusPayload

RECORDING_STATE = "Recording"

ToggleVariant = Literal["primary", "danger"]


@dataclass(frozen=True)
class SessionStatus:
    """Agent state as reported by the backend.

    ``state`` is kept as an opaque string; the agent may report states
    beyond ``Idle`` and ``Recording``.
    """

    state: str = "Idle"
    last_error: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "SessionStatus":
        if not isinstance(payload, dict):
            raise TypeError(f"Status payload must be an object, got {type(payload).__name__}")
        state = payload.get("state")
        if not isinstance(state, str):
            raise TypeError(f"Status state must be a string, got {state!r}")
        last_error = payload.get("lastError")
        if last_error is not None and not isinstance(last_error, str):
            last_error = str(last_error)
        return cls(state=state, last_error=last_error)

    def to_dict(self) -> StatusPayload:
        return {"state": self.state, "lastError": self.last_error}


class StatusView:
    """Latest known status. Always replaced whole, never merged."""

    def __init__(self, initial: SessionStatus | None = None) -> None:
        self._status = initial or SessionStatus()

    def get(self) -> SessionStatus:
        return self._status

    def replace(self, status: SessionStatus) -> None:
        self._status = status

    @property
    def is_recording(self) -> bool:
        return self._status.state == RECORDING_STATE

    @property
    def toggle_label(self) -> str:
        return "Stop" if self.is_recording else "Start"

    @property
    def toggle_variant(self) -> ToggleVariant:
        return "danger" if self.is_recording else "primary"
