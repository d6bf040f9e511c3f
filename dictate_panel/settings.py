"""Runtime settings for the Dictate panel."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_URL = "http://127.0.0.1:8765"
EVENTS_PATH = "/ws/events"

_TRUTHY = ("1", "true", "yes")


def events_url_for(backend_url: str) -> str:
    """Derive the WebSocket events URL from the HTTP backend URL."""
    base = backend_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return base + EVENTS_PATH


@dataclass
class PanelSettings:
    backend_url: str = DEFAULT_BACKEND_URL
    events_url: Optional[str] = None
    request_timeout_s: Optional[float] = None
    discard_stale_results: bool = False
    verbose: bool = False

    @property
    def resolved_events_url(self) -> str:
        return self.events_url or events_url_for(self.backend_url)

    @classmethod
    def from_env(cls) -> "PanelSettings":
        settings = cls()

        if url := os.environ.get("DICTATE_PANEL_BACKEND_URL"):
            settings.backend_url = url

        if url := os.environ.get("DICTATE_PANEL_EVENTS_URL"):
            settings.events_url = url

        if timeout := os.environ.get("DICTATE_PANEL_TIMEOUT"):
            try:
                settings.request_timeout_s = float(timeout)
            except ValueError:
                logger.warning("Ignoring invalid DICTATE_PANEL_TIMEOUT=%r", timeout)

        if discard := os.environ.get("DICTATE_PANEL_DISCARD_STALE"):
            settings.discard_stale_results = discard.lower() in _TRUTHY

        if verbose := os.environ.get("DICTATE_PANEL_VERBOSE"):
            settings.verbose = verbose.lower() in _TRUTHY

        return settings
