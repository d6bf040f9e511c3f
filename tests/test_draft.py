"""Tests for the draft store."""

from __future__ import annotations

import pytest

from dictate_panel.config import Config, InsertPostfix, InvalidNumberError
from dictate_panel.draft import DraftStore


class TestDraftStore:
    """Tests for DraftStore edits."""

    def test_starts_with_defaults(self) -> None:
        assert DraftStore().get() == Config()

    def test_last_edit_wins_per_field(self) -> None:
        store = DraftStore()
        store.set("thresholds.holdMs", 200)
        store.set("thresholds.doubleClickMs", 250)
        store.set("thresholds.holdMs", 210)
        config = store.get()
        assert config.thresholds.hold_ms == 210
        assert config.thresholds.double_click_ms == 250

    def test_sibling_edits_are_independent(self) -> None:
        store = DraftStore()
        store.set("azure.endpoint", "https://example.openai.azure.com")
        store.set("azure.deployment", "gpt-4o-mini-transcribe")
        store.set("insert.restoreClipboard", False)
        config = store.get()
        assert config.azure.endpoint == "https://example.openai.azure.com"
        assert config.azure.deployment == "gpt-4o-mini-transcribe"
        assert config.azure.api_version == "2025-03-01-preview"
        assert config.insert.restore_clipboard is False
        assert config.insert.postfix is InsertPostfix.NONE

    def test_earlier_snapshot_is_unchanged(self) -> None:
        store = DraftStore()
        before = store.get()
        store.set("recording.maxSeconds", 30)
        assert before.recording.max_seconds == 120
        assert store.get().recording.max_seconds == 30

    def test_replace(self) -> None:
        store = DraftStore()
        store.set("hotkey.windows", "Alt")
        replacement = Config()
        store.replace(replacement)
        assert store.get() is replacement


class TestSetText:
    """Tests for raw field input."""

    def test_numeric_text(self) -> None:
        store = DraftStore()
        store.set_text("thresholds.holdMs", "200")
        assert store.get().thresholds.hold_ms == 200

    def test_invalid_numeric_keeps_value(self) -> None:
        store = DraftStore()
        store.set_text("recording.maxSeconds", "60")
        with pytest.raises(InvalidNumberError):
            store.set_text("recording.maxSeconds", "sixty")
        assert store.get().recording.max_seconds == 60

    def test_out_of_range_is_not_clamped(self) -> None:
        store = DraftStore()
        store.set_text("recording.maxSeconds", "0")
        assert store.get().recording.max_seconds == 0

    def test_boolean_text(self) -> None:
        store = DraftStore()
        store.set_text("insert.restoreClipboard", "no")
        assert store.get().insert.restore_clipboard is False

    def test_string_text_is_stored_verbatim(self) -> None:
        store = DraftStore()
        store.set_text("hotkey.windows", " Win+Shift+D ")
        assert store.get().hotkey.windows == " Win+Shift+D "

    def test_postfix_text(self) -> None:
        store = DraftStore()
        store.set_text("insert.postfix", "NONE")
        assert store.get().insert.postfix is InsertPostfix.NONE

    def test_unknown_field(self) -> None:
        with pytest.raises(KeyError):
            DraftStore().set_text("azure.apiKey", "secret")
