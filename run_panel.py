#!/usr/bin/env python3
"""
Dictate Panel - control surface for the dictation agent

Usage:
    python run_panel.py show
    python run_panel.py set thresholds.holdMs=200
    python run_panel.py watch

Environment Variables:
    DICTATE_PANEL_BACKEND_URL    Bridge server URL (default http://127.0.0.1:8765)
    DICTATE_PANEL_EVENTS_URL     Event WebSocket URL (default derived from the backend URL)
    DICTATE_PANEL_TIMEOUT        Request timeout in seconds (default: none)
    DICTATE_PANEL_DISCARD_STALE  Drop results superseded by newer requests: '1' or 'true'
    DICTATE_PANEL_VERBOSE        Enable verbose logging: '1' or 'true'
"""

from dictate_panel.__main__ import main

if __name__ == "__main__":
    raise SystemExit(main())
