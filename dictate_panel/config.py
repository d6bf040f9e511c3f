"""Configuration model for the dictation agent."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from dictate_panel.types import ConfigPayload


class InsertPostfix(str, Enum):
    NONE = "none"


class InvalidNumberError(ValueError):
    """Raised when numeric field input is not an integer."""


@dataclass(frozen=True)
class AzureConfig:
    endpoint: str = ""
    deployment: str = ""
    api_version: str = "2025-03-01-preview"


@dataclass(frozen=True)
class HotkeyConfig:
    windows: str = "Win+Shift+D"


@dataclass(frozen=True)
class ThresholdsConfig:
    hold_ms: int = 180
    double_click_ms: int = 300


@dataclass(frozen=True)
class RecordingConfig:
    max_seconds: int = 120


@dataclass(frozen=True)
class InsertConfig:
    restore_clipboard: bool = True
    postfix: InsertPostfix = InsertPostfix.NONE


# Wire key -> (section attribute, section type)
SECTIONS: dict[str, tuple[str, type]] = {
    "azure": ("azure", AzureConfig),
    "hotkey": ("hotkey", HotkeyConfig),
    "thresholds": ("thresholds", ThresholdsConfig),
    "recording": ("recording", RecordingConfig),
    "insert": ("insert", InsertConfig),
}

# Wire key -> attribute name, per section
FIELD_NAMES: dict[str, dict[str, str]] = {
    "azure": {
        "endpoint": "endpoint",
        "deployment": "deployment",
        "apiVersion": "api_version",
    },
    "hotkey": {"windows": "windows"},
    "thresholds": {"holdMs": "hold_ms", "doubleClickMs": "double_click_ms"},
    "recording": {"maxSeconds": "max_seconds"},
    "insert": {"restoreClipboard": "restore_clipboard", "postfix": "postfix"},
}

FIELD_PATHS: tuple[str, ...] = tuple(
    f"{section}.{key}" for section, keys in FIELD_NAMES.items() for key in keys
)

NUMERIC_FIELDS = frozenset(
    {"thresholds.holdMs", "thresholds.doubleClickMs", "recording.maxSeconds"}
)

BOOLEAN_FIELDS = frozenset({"insert.restoreClipboard"})

# Lower bounds the backend enforces; only used as input hints here
NUMERIC_MINIMUMS = {
    "thresholds.holdMs": 0,
    "thresholds.doubleClickMs": 0,
    "recording.maxSeconds": 1,
}

# ASCII digits only; int() alone also takes "1_000" and non-Latin digits
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def split_path(path: str) -> tuple[str, str, str]:
    """Resolve a dotted wire path to (section, section attribute, field attribute)."""
    section, _, key = path.partition(".")
    if section not in FIELD_NAMES or key not in FIELD_NAMES[section]:
        raise KeyError(f"Unknown config field: {path}")
    return section, SECTIONS[section][0], FIELD_NAMES[section][key]


def parse_numeric(text: str) -> int:
    """Convert raw field text to an integer.

    Blank input counts as 0, the way a cleared number input does.
    """
    stripped = text.strip()
    if not stripped:
        return 0
    if not _INTEGER_RE.fullmatch(stripped):
        raise InvalidNumberError(f"Not a whole number: {text!r}")
    return int(stripped)


def parse_bool(text: str) -> bool:
    value = text.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Not a boolean: {text!r}")


def _coerce(path: str, value: Any) -> Any:
    if path == "insert.postfix":
        return InsertPostfix(value)
    if path in NUMERIC_FIELDS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{path} must be an integer, got {value!r}")
        return value
    if path in BOOLEAN_FIELDS:
        if not isinstance(value, bool):
            raise TypeError(f"{path} must be a boolean, got {value!r}")
        return value
    if not isinstance(value, str):
        raise TypeError(f"{path} must be a string, got {value!r}")
    return value


@dataclass(frozen=True)
class Config:
    azure: AzureConfig = field(default_factory=AzureConfig)
    hotkey: HotkeyConfig = field(default_factory=HotkeyConfig)
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)
    recording: RecordingConfig = field(default_factory=RecordingConfig)
    insert: InsertConfig = field(default_factory=InsertConfig)

    def get_field(self, path: str) -> Any:
        _, section_attr, field_attr = split_path(path)
        return getattr(getattr(self, section_attr), field_attr)

    def to_dict(self) -> ConfigPayload:
        """Build a fresh wire payload. Nothing in it is shared with this object."""
        payload: dict[str, dict[str, Any]] = {}
        for section, keys in FIELD_NAMES.items():
            section_obj = getattr(self, SECTIONS[section][0])
            payload[section] = {}
            for key, attr in keys.items():
                value = getattr(section_obj, attr)
                if isinstance(value, Enum):
                    value = value.value
                payload[section][key] = value
        return payload  # type: ignore[return-value]

    @classmethod
    def from_dict(cls, payload: Any) -> "Config":
        """Decode a wire payload; missing sections and keys keep their defaults."""
        if not isinstance(payload, dict):
            raise TypeError(f"Config payload must be an object, got {type(payload).__name__}")

        sections: dict[str, Any] = {}
        for section, (attr, section_type) in SECTIONS.items():
            raw = payload.get(section) or {}
            if not isinstance(raw, dict):
                raise TypeError(f"Config section {section!r} must be an object")
            values = {
                FIELD_NAMES[section][key]: _coerce(f"{section}.{key}", value)
                for key, value in raw.items()
                if key in FIELD_NAMES[section]
            }
            sections[attr] = section_type(**values)
        return cls(**sections)


def replace_field(config: Config, path: str, value: Any) -> Config:
    """Return a copy of ``config`` with exactly one leaf replaced."""
    _, section_attr, field_attr = split_path(path)
    value = _coerce(path, value)
    section = replace(getattr(config, section_attr), **{field_attr: value})
    return replace(config, **{section_attr: section})
