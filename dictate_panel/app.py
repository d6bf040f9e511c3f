"""Dictate control panel application."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional, Sequence

from dictate_panel.config import FIELD_PATHS, InvalidNumberError
from dictate_panel.controller import ApiKeyPresence, AutostartState, PanelController
from dictate_panel.events import WebSocketEventStream
from dictate_panel.gateway import HttpCommandGateway
from dictate_panel.settings import PanelSettings

if TYPE_CHECKING:
    from dictate_panel.events import EventStream
    from dictate_panel.gateway import CommandGateway

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

API_KEY_LABELS = {
    ApiKeyPresence.UNKNOWN: "(checking...)",
    ApiKeyPresence.PRESENT: "(detected)",
    ApiKeyPresence.ABSENT: "(not detected)",
}

AUTOSTART_LABELS = {
    AutostartState.UNKNOWN: "unknown",
    AutostartState.ENABLED: "on",
    AutostartState.DISABLED: "off",
}


def format_panel(controller: PanelController) -> str:
    """Render the panel state as text."""
    status = controller.status.get()
    config = controller.draft.get()
    controls = controller.controls

    lines = ["=" * 60, f"🎙️ Status: {status.state}"]
    if status.last_error:
        lines.append(f"   Agent error: {status.last_error}")
    if controller.error:
        lines.append(f"❌ {controller.error}")
    lines.append("-" * 60)
    lines.append(f"API key (AZURE_OPENAI_API_KEY): {API_KEY_LABELS[controller.api_key]}")
    lines.append(f"Launch at login: {AUTOSTART_LABELS[controller.autostart]}")
    for path in FIELD_PATHS:
        value = config.get_field(path)
        if hasattr(value, "value"):
            value = value.value
        lines.append(f"  {path:<26} {value}")
    lines.append("-" * 60)
    lines.append(
        f"[{controls.toggle_label}] recording"
        + ("" if controls.can_toggle_recording else " (disabled)")
    )
    if controller.transcript:
        lines.append(f"📝 Transcript: {controller.transcript}")
    lines.append("=" * 60)
    return "\n".join(lines)


def parse_assignment(assignment: str) -> tuple[str, str]:
    path, sep, value = assignment.partition("=")
    if not sep:
        raise ValueError(f"Expected PATH=VALUE, got {assignment!r}")
    return path.strip(), value


class PanelApp:
    """
    Command-line front end for the dictation agent.

    Builds the gateway, event stream and controller from settings and runs
    one panel action per invocation, honouring the same gating the
    controls would show.
    """

    def __init__(
        self,
        settings: PanelSettings | None = None,
        *,
        gateway: Optional["CommandGateway"] = None,
        stream: Optional["EventStream"] = None,
    ) -> None:
        self._settings = settings or PanelSettings()
        self._gateway = gateway or HttpCommandGateway(
            self._settings.backend_url,
            timeout=self._settings.request_timeout_s,
        )
        self._stream = stream or WebSocketEventStream(self._settings.resolved_events_url)
        self.controller = PanelController(
            self._gateway,
            discard_stale_results=self._settings.discard_stale_results,
        )

    def _result(self) -> int:
        if self.controller.error:
            print(f"❌ {self.controller.error}")
            return EXIT_FAILED
        return EXIT_OK

    def _require(self, allowed: bool, action: str) -> bool:
        if not allowed:
            print(f"⛔️ {action} is unavailable right now")
        return allowed

    async def show(self) -> int:
        await self.controller.reload()
        print(format_panel(self.controller))
        return EXIT_FAILED if self.controller.error else EXIT_OK

    async def watch(self, interval_s: float = 0.2) -> int:
        """Print the panel whenever status, transcript or error changes."""
        await self.controller.start(self._stream)
        print(format_panel(self.controller))
        last = self._snapshot()
        while True:
            await asyncio.sleep(interval_s)
            current = self._snapshot()
            if current != last:
                print(format_panel(self.controller))
                last = current

    def _snapshot(self) -> tuple:
        c = self.controller
        return (c.status.get(), c.error, c.transcript, c.autostart, c.loading, c.saving)

    async def set_fields(self, assignments: Sequence[str]) -> int:
        await self.controller.reload()
        if self.controller.error:
            return self._result()

        for assignment in assignments:
            try:
                path, value = parse_assignment(assignment)
                self.controller.draft.set_text(path, value)
            except (InvalidNumberError, KeyError, ValueError) as e:
                print(f"⚠️ {e}. Nothing was saved.")
                return EXIT_USAGE

        if not self._require(self.controller.can_save, "Save"):
            return EXIT_FAILED
        await self.controller.save()
        if not self.controller.error:
            print("✅ Saved.")
        return self._result()

    async def reset(self, save: bool = False) -> int:
        if not self._require(self.controller.controls.can_reset, "Reset"):
            return EXIT_FAILED
        await self.controller.reset()
        if self.controller.error:
            return self._result()
        if save:
            await self.controller.save()
        print(format_panel(self.controller))
        return self._result()

    async def toggle(self) -> int:
        if not self._require(self.controller.controls.can_toggle_recording, "Recording toggle"):
            return EXIT_FAILED
        await self.controller.toggle_recording()
        if not self.controller.error:
            print("🔁 Toggle sent.")
        return self._result()

    async def test(self) -> int:
        if not self._require(self.controller.controls.can_test, "Test"):
            return EXIT_FAILED
        print("🎤 Testing transcription...")
        await self.controller.test_transcription()
        if self.controller.transcript is not None:
            print(f"📝 {self.controller.transcript}")
        return self._result()

    async def autostart(self, enabled: bool) -> int:
        await self.controller.reload()
        if self.controller.error:
            return self._result()
        if not self._require(self.controller.controls.can_set_autostart, "Launch at login"):
            return EXIT_FAILED
        await self.controller.set_autostart(enabled)
        if not self.controller.error:
            print(f"✅ Launch at login {'enabled' if enabled else 'disabled'}.")
        return self._result()

    async def shutdown(self) -> None:
        logger.info("Shutting down...")
        self.controller.stop()
        await self._stream.close()
        await self._gateway.aclose()
