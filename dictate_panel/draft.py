"""Editable configuration draft."""

from __future__ import annotations

import logging
from typing import Any

from dictate_panel.config import (
    BOOLEAN_FIELDS,
    NUMERIC_FIELDS,
    Config,
    InsertPostfix,
    parse_bool,
    parse_numeric,
    replace_field,
)

logger = logging.getLogger(__name__)


class DraftStore:
    """
    Holds the user's working copy of the configuration.

    Every edit swaps in a new frozen ``Config`` snapshot, so a reader that
    grabbed ``get()`` earlier keeps seeing a consistent record. Values are
    only type-converted here; range checks belong to the backend on save.
    """

    def __init__(self, initial: Config | None = None) -> None:
        self._config = initial or Config()

    def get(self) -> Config:
        return self._config

    def set(self, path: str, value: Any) -> Config:
        """Replace a single leaf field, e.g. ``set("thresholds.holdMs", 200)``."""
        self._config = replace_field(self._config, path, value)
        return self._config

    def set_text(self, path: str, raw: str) -> Config:
        """Apply raw text from a field editor.

        Numeric fields raise ``InvalidNumberError`` on bad input and the
        stored value is left as it was.
        """
        if path in NUMERIC_FIELDS:
            value: Any = parse_numeric(raw)
        elif path in BOOLEAN_FIELDS:
            value = parse_bool(raw)
        elif path == "insert.postfix":
            value = InsertPostfix(raw.strip().lower())
        else:
            value = raw
        return self.set(path, value)

    def replace(self, config: Config) -> None:
        logger.debug("Draft replaced")
        self._config = config
