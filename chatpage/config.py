"""Chat handler configuration."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILE = "chatpage.json"

ENV_PREFIX = "CHATPAGE_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass
class HandlerConfig:
    """Chat handler settings."""

    # Route incoming lines through the page detector (NPC dialogue extraction)
    needs_page_detector: bool = True

    # Dialogue delivery timing, in ticks
    protection_window_ticks: int = 20
    grace_ticks: int = 1

    # Log every routed chat line at INFO
    log_chat_lines: bool = True

    def save(self, path: str | Path = CONFIG_FILE) -> None:
        """Save config to JSON file."""
        Path(path).write_text(
            json.dumps(asdict(self), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    @classmethod
    def load(cls, path: str | Path = CONFIG_FILE) -> HandlerConfig:
        """Load config from JSON file, using defaults for missing fields."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (FileNotFoundError, json.JSONDecodeError):
            return cls()
        if not isinstance(data, dict):
            logger.warning("Config %s is not a JSON object, using defaults", path)
            return cls()
        defaults = asdict(cls())
        unknown = set(data) - set(defaults)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", sorted(unknown))
        for key, value in data.items():
            if key not in defaults:
                continue
            # bool is an int subclass, so compare exact types
            if type(value) is not type(defaults[key]):
                logger.warning("Invalid type for config key %s: %r, keeping default", key, value)
                continue
            defaults[key] = value
        return cls(**defaults)

    def with_env(self, environ: Mapping[str, str] | None = None) -> HandlerConfig:
        """Return a copy with CHATPAGE_* environment overrides applied.

        CHATPAGE_GRACE_TICKS=2 overrides ``grace_ticks`` and so on.
        """
        env = os.environ if environ is None else environ
        values = asdict(self)
        for f in fields(self):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if isinstance(values[f.name], bool):
                values[f.name] = raw.strip().lower() in _TRUE_VALUES
            else:
                try:
                    values[f.name] = int(raw)
                except ValueError:
                    logger.warning("Invalid value for %s%s: %r", ENV_PREFIX, f.name.upper(), raw)
        return HandlerConfig(**values)
