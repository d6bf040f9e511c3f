"""Command gateway to the dictation agent backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

import httpx

from dictate_panel.config import Config
from dictate_panel.status import SessionStatus

logger = logging.getLogger(__name__)


class Command(str, Enum):
    GET_CONFIG = "get_config"
    CHECK_API_KEY = "check_api_key"
    GET_STATUS = "get_status"
    GET_AUTOSTART_ENABLED = "get_autostart_enabled"
    SET_AUTOSTART_ENABLED = "set_autostart_enabled"
    SET_CONFIG = "set_config"
    RESET_CONFIG = "reset_config"
    TOGGLE_RECORDING = "toggle_recording"
    TEST_TRANSCRIPTION = "test_transcription"


class CommandError(Exception):
    """A backend command failed. ``str(error)`` is the text shown to the user."""


class CommandGateway(ABC):
    """Executes named commands against the backend."""

    @abstractmethod
    async def invoke(self, command: str, payload: Optional[dict[str, Any]] = None) -> Any:
        """Run ``command`` and return its result, raising ``CommandError`` on failure."""
        ...

    async def aclose(self) -> None:
        return None


class HttpCommandGateway(CommandGateway):
    """
    Gateway speaking to the bridge server over HTTP.

    Each command is ``POST /commands/{name}`` with the request payload as the
    JSON body. The server answers with ``{"ok": true, "result": ...}`` or
    ``{"ok": false, "error": "..."}``. No client-side timeout unless one is
    given: a hung backend keeps the call pending.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    async def invoke(self, command: str, payload: Optional[dict[str, Any]] = None) -> Any:
        name = command.value if isinstance(command, Command) else command
        logger.debug("Invoking %s", name)
        try:
            response = await self._client.post(f"/commands/{name}", json=payload or {})
        except httpx.RequestError as exc:
            raise CommandError(
                f"Unable to reach the dictation agent at {self._base_url}: {exc}"
            ) from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("ok") is False:
            raise CommandError(str(body.get("error") or f"{name} failed"))

        if response.is_error:
            raise CommandError(
                f"{name} failed with HTTP {response.status_code}: {response.text}"
            )

        if not isinstance(body, dict) or body.get("ok") is not True:
            raise CommandError(f"Malformed response to {name}")

        return body.get("result")

    async def aclose(self) -> None:
        await self._client.aclose()


class BackendClient:
    """Typed calls on top of a ``CommandGateway``."""

    def __init__(self, gateway: CommandGateway) -> None:
        self._gateway = gateway

    async def get_config(self) -> Config:
        result = await self._gateway.invoke(Command.GET_CONFIG)
        return _decode(Command.GET_CONFIG, Config.from_dict, result)

    async def reset_config(self) -> Config:
        result = await self._gateway.invoke(Command.RESET_CONFIG)
        return _decode(Command.RESET_CONFIG, Config.from_dict, result)

    async def set_config(self, config: Config) -> None:
        await self._gateway.invoke(Command.SET_CONFIG, {"config": config.to_dict()})

    async def check_api_key(self) -> bool:
        result = await self._gateway.invoke(Command.CHECK_API_KEY)
        if not isinstance(result, dict) or not isinstance(result.get("present"), bool):
            raise CommandError(f"Malformed response to {Command.CHECK_API_KEY.value}")
        return result["present"]

    async def get_status(self) -> SessionStatus:
        result = await self._gateway.invoke(Command.GET_STATUS)
        return _decode(Command.GET_STATUS, SessionStatus.from_dict, result)

    async def get_autostart_enabled(self) -> bool:
        result = await self._gateway.invoke(Command.GET_AUTOSTART_ENABLED)
        if not isinstance(result, bool):
            raise CommandError(f"Malformed response to {Command.GET_AUTOSTART_ENABLED.value}")
        return result

    async def set_autostart_enabled(self, enabled: bool) -> None:
        await self._gateway.invoke(Command.SET_AUTOSTART_ENABLED, {"enabled": enabled})

    async def toggle_recording(self) -> None:
        await self._gateway.invoke(Command.TOGGLE_RECORDING)

    async def test_transcription(self) -> str:
        result = await self._gateway.invoke(Command.TEST_TRANSCRIPTION)
        if not isinstance(result, str):
            raise CommandError(f"Malformed response to {Command.TEST_TRANSCRIPTION.value}")
        return result


def _decode(command: Command, decoder, result: Any):
    try:
        return decoder(result)
    except (TypeError, ValueError) as exc:
        raise CommandError(f"Malformed response to {command.value}: {exc}") from exc
