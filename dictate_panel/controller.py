"""Operation coordinator for the Dictate control panel."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from dictate_panel.draft import DraftStore
from dictate_panel.events import EventSubscriptions
from dictate_panel.gateway import BackendClient, CommandError, CommandGateway
from dictate_panel.status import SessionStatus, StatusView, ToggleVariant

if TYPE_CHECKING:
    from dictate_panel.config import Config
    from dictate_panel.events import EventStream

logger = logging.getLogger(__name__)

RELOAD = "reload"
TRANSCRIPT = "transcript"


class ApiKeyPresence(str, Enum):
    UNKNOWN = "unknown"
    PRESENT = "present"
    ABSENT = "absent"

    @classmethod
    def from_bool(cls, present: bool) -> "ApiKeyPresence":
        return cls.PRESENT if present else cls.ABSENT


class AutostartState(str, Enum):
    UNKNOWN = "unknown"
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def from_bool(cls, enabled: bool) -> "AutostartState":
        return cls.ENABLED if enabled else cls.DISABLED


@dataclass(frozen=True)
class Controls:
    """Which panel actions are currently available."""

    can_toggle_recording: bool
    can_reload: bool
    can_reset: bool
    can_save: bool
    can_test: bool
    can_set_autostart: bool
    toggle_label: str
    toggle_variant: ToggleVariant


class PanelController:
    """
    Keeps the configuration draft and status view in step with the backend.

    Runs on a single asyncio loop: state only changes when an operation
    resumes or an event handler runs, so no locking is needed. Operations
    may overlap; the ``Controls`` gating is advisory and nothing here refuses
    a call. Results are applied in completion order (last resolved wins)
    unless ``discard_stale_results`` is set, in which case a completion is
    dropped when a newer reload or transcript producer has started since.
    """

    def __init__(
        self,
        gateway: CommandGateway,
        *,
        discard_stale_results: bool = False,
        initial_config: Optional["Config"] = None,
    ) -> None:
        self._backend = BackendClient(gateway)
        self._discard_stale = discard_stale_results
        self._generations: dict[str, int] = {RELOAD: 0, TRANSCRIPT: 0}
        self._subscriptions: Optional[EventSubscriptions] = None

        self.draft = DraftStore(initial_config)
        self.status = StatusView()
        self.api_key = ApiKeyPresence.UNKNOWN
        self.autostart = AutostartState.UNKNOWN
        self.loading = False
        self.saving = False
        self.error: Optional[str] = None
        self.transcript: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self.loading or self.saving

    @property
    def can_save(self) -> bool:
        return not self.loading and not self.saving

    @property
    def controls(self) -> Controls:
        busy = self.is_busy
        return Controls(
            can_toggle_recording=not busy,
            can_reload=not busy,
            can_reset=not busy,
            can_save=self.can_save,
            can_test=not busy,
            can_set_autostart=self.autostart is not AutostartState.UNKNOWN and not busy,
            toggle_label=self.status.toggle_label,
            toggle_variant=self.status.toggle_variant,
        )

    # Lifecycle

    async def start(self, stream: "EventStream") -> None:
        """Subscribe to backend events, then load everything."""
        self._subscriptions = EventSubscriptions(stream, self)
        await self._subscriptions.start()
        await self.reload()

    def stop(self) -> None:
        if self._subscriptions is not None:
            self._subscriptions.stop()
            self._subscriptions = None

    # Operations

    async def reload(self) -> None:
        token = self._issue(RELOAD)
        self.loading = True
        self.error = None
        self.transcript = None
        try:
            config, key_present, status = await asyncio.gather(
                self._backend.get_config(),
                self._backend.check_api_key(),
                self._backend.get_status(),
            )
            if self._is_current(RELOAD, token):
                self.draft.replace(config)
                self.api_key = ApiKeyPresence.from_bool(key_present)
                self.status.replace(status)

            enabled = await self._backend.get_autostart_enabled()
            if self._is_current(RELOAD, token):
                self.autostart = AutostartState.from_bool(enabled)
                logger.info("Reloaded panel state (agent %s)", status.state)
        except CommandError as e:
            if self._is_current(RELOAD, token):
                self._fail("reload", e)
        finally:
            # A superseded reload leaves the flag to the newer one
            if self._is_current(RELOAD, token):
                self.loading = False

    async def save(self) -> None:
        self.saving = True
        self.error = None
        self.transcript = None
        try:
            await self._backend.set_config(self.draft.get())
            logger.info("Configuration saved")
        except CommandError as e:
            self._fail("save", e)
        finally:
            self.saving = False

    async def reset(self) -> None:
        self.error = None
        try:
            defaults = await self._backend.reset_config()
        except CommandError as e:
            self._fail("reset", e)
            return
        self.draft.replace(defaults)
        logger.info("Draft reset to backend defaults")

    async def test_transcription(self) -> None:
        token = self._issue(TRANSCRIPT)
        self.error = None
        self.transcript = None
        try:
            text = await self._backend.test_transcription()
        except CommandError as e:
            if self._is_current(TRANSCRIPT, token):
                self._fail("test transcription", e)
            return
        if self._is_current(TRANSCRIPT, token):
            self.transcript = text

    async def toggle_recording(self) -> None:
        self.error = None
        try:
            await self._backend.toggle_recording()
        except CommandError as e:
            self._fail("toggle recording", e)

    async def set_autostart(self, enabled: bool) -> None:
        self.error = None
        try:
            await self._backend.set_autostart_enabled(enabled)
        except CommandError as e:
            self._fail("set autostart", e)
            return
        self.autostart = AutostartState.from_bool(enabled)

    # Event handlers

    def on_status_changed(self, payload: Any) -> None:
        self.status.replace(SessionStatus.from_dict(payload))

    def on_transcript_ready(self, payload: Any) -> None:
        if payload is None:
            logger.warning("Ignoring transcript_ready event without text")
            return
        self._issue(TRANSCRIPT)
        self.transcript = str(payload)

    def on_error(self, payload: Any) -> None:
        self.error = str(payload)

    # Internals

    def _issue(self, category: str) -> int:
        self._generations[category] += 1
        return self._generations[category]

    def _is_current(self, category: str, token: int) -> bool:
        if not self._discard_stale or self._generations[category] == token:
            return True
        logger.debug("Discarding stale %s result", category)
        return False

    def _fail(self, operation: str, error: CommandError) -> None:
        logger.warning("%s failed: %s", operation.capitalize(), error)
        self.error = str(error)
