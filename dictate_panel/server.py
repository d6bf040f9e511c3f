"""Bridge server for Dictate - exposes the agent's commands and events over HTTP."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from dictate_panel.backend import AgentBackend, InMemoryAgent
from dictate_panel.config import Config
from dictate_panel.gateway import Command, CommandError
from dictate_panel.types import ApiKeyStatus

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765

_agent: AgentBackend | None = None

Handler = Callable[[AgentBackend, dict[str, Any]], Awaitable[Any]]


async def _get_config(agent: AgentBackend, payload: dict[str, Any]) -> Any:
    return (await agent.get_config()).to_dict()


async def _set_config(agent: AgentBackend, payload: dict[str, Any]) -> Any:
    if "config" not in payload:
        raise CommandError("missing field: config")
    try:
        config = Config.from_dict(payload["config"])
    except (TypeError, ValueError) as e:
        raise CommandError(f"invalid config: {e}") from e
    await agent.set_config(config)
    return None


async def _reset_config(agent: AgentBackend, payload: dict[str, Any]) -> Any:
    return (await agent.reset_config()).to_dict()


async def _check_api_key(agent: AgentBackend, payload: dict[str, Any]) -> ApiKeyStatus:
    return {"present": await agent.check_api_key()}


async def _get_status(agent: AgentBackend, payload: dict[str, Any]) -> Any:
    return (await agent.get_status()).to_dict()


async def _get_autostart_enabled(agent: AgentBackend, payload: dict[str, Any]) -> Any:
    return await agent.get_autostart_enabled()


async def _set_autostart_enabled(agent: AgentBackend, payload: dict[str, Any]) -> Any:
    enabled = payload.get("enabled")
    if not isinstance(enabled, bool):
        raise CommandError("enabled must be a boolean")
    await agent.set_autostart_enabled(enabled)
    return None


async def _toggle_recording(agent: AgentBackend, payload: dict[str, Any]) -> Any:
    await agent.toggle_recording()
    return None


async def _test_transcription(agent: AgentBackend, payload: dict[str, Any]) -> Any:
    return await agent.test_transcription()


HANDLERS: dict[str, Handler] = {
    Command.GET_CONFIG.value: _get_config,
    Command.SET_CONFIG.value: _set_config,
    Command.RESET_CONFIG.value: _reset_config,
    Command.CHECK_API_KEY.value: _check_api_key,
    Command.GET_STATUS.value: _get_status,
    Command.GET_AUTOSTART_ENABLED.value: _get_autostart_enabled,
    Command.SET_AUTOSTART_ENABLED.value: _set_autostart_enabled,
    Command.TOGGLE_RECORDING.value: _toggle_recording,
    Command.TEST_TRANSCRIPTION.value: _test_transcription,
}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    global _agent

    print("\n🌐 Dictate Bridge Server")
    print("=" * 40)

    if _agent is None:
        _agent = InMemoryAgent()
        print("   Using in-memory agent")

    print("\n✅ Server ready!")
    print("=" * 40)

    yield

    print("\n👋 Shutting down...")


def create_app(agent: AgentBackend | None = None) -> FastAPI:
    global _agent
    if agent is not None:
        _agent = agent

    app = FastAPI(
        title="Dictate Bridge API",
        description="Command and event surface of the dictation agent",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health_check():
        return JSONResponse({
            "status": "healthy",
            "agent": _agent is not None,
        })

    @app.post("/commands/{name}")
    async def run_command(name: str, request: Request):
        handler = HANDLERS.get(name)
        if handler is None:
            return _error(f"unknown command: {name}", 404)

        if _agent is None:
            return _error("Agent not ready", 503)

        body = await request.body()
        payload: Any = {}
        if body:
            try:
                payload = json.loads(body)
            except json.JSONDecodeError:
                return _error("request body is not valid JSON", 400)
        if not isinstance(payload, dict):
            return _error("request body must be a JSON object", 400)

        try:
            result = await handler(_agent, payload)
        except CommandError as e:
            logger.warning("Command %s failed: %s", name, e)
            return _error(str(e), 400)
        except Exception as e:
            logger.exception("Command %s crashed", name)
            return _error(str(e), 500)

        return JSONResponse({"ok": True, "result": result})

    @app.websocket("/ws/events")
    async def websocket_events(websocket: WebSocket):
        if _agent is None:
            await websocket.close(code=1013)
            return

        hub = _agent.hub
        queue = hub.register()
        await websocket.accept()
        logger.info("Event client %s connected", id(websocket))

        async def forward() -> None:
            while True:
                await websocket.send_json(await queue.get())

        sender = asyncio.create_task(forward())
        try:
            # Clients never send; this only waits for the disconnect
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info("Event client disconnected")
        finally:
            sender.cancel()
            hub.unregister(queue)

    return app


def main():
    parser = argparse.ArgumentParser(description="Dictate Bridge Server")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    import uvicorn

    print(f"\n🚀 Starting Dictate Bridge Server at http://{args.host}:{args.port}")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "dictate_panel.server:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
