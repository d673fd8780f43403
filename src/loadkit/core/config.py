from __future__ import annotations

"""
loadkit.core.config
===================

Typed configuration for the library loader.
- No external deps; optional JSON file loading.
- Derives the stylesheet readiness timeout from the poll interval and budget.
- Provides small env overrides for convenience.

If a config file path is not provided or not found, the defaults are used:
a stylesheet is polled every 10 ms, at most 3000 times (~30 s).
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .types import (
    DEFAULT_SCRIPT_CHARSET,
    DEFAULT_SCRIPT_TYPE,
    DEFAULT_STYLE_POLL_ATTEMPTS,
    DEFAULT_STYLE_POLL_INTERVAL_MS,
)


def _env_int(name: str) -> int | None:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    try:
        return int(val)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {val!r}") from e


def _try_load_json(path: Path | None) -> dict[str, Any]:
    if not path:
        return {}
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


@dataclass
class LoaderConfig:
    """Loader configuration loaded from JSON/env with a derived timeout field."""

    # ---- Stylesheet readiness poll
    style_poll_interval_ms: int = DEFAULT_STYLE_POLL_INTERVAL_MS
    style_poll_attempts: int = DEFAULT_STYLE_POLL_ATTEMPTS

    # ---- Script element properties
    script_charset: str = DEFAULT_SCRIPT_CHARSET
    script_type: str = DEFAULT_SCRIPT_TYPE

    # ---- Catalog source (JSON file), optional
    catalog_path: str | None = None

    # ---- Derived (ms)
    style_timeout_ms: int = 0

    def __post_init__(self) -> None:
        if self.style_poll_interval_ms <= 0:
            raise ValueError("style_poll_interval_ms must be > 0")
        if self.style_poll_attempts <= 0:
            raise ValueError("style_poll_attempts must be > 0")
        if not self.script_charset or not self.script_type:
            raise ValueError("script_charset and script_type must be non-empty strings")
        self.style_timeout_ms = int(self.style_poll_interval_ms * self.style_poll_attempts)

    @classmethod
    def load(cls, path: Path | str | None = None, *, overrides: dict[str, Any] | None = None) -> LoaderConfig:
        """
        Load config from JSON file (if provided), then apply env and overrides.

        Env overrides:
          - LOADKIT_STYLE_POLL_INTERVAL_MS
          - LOADKIT_STYLE_POLL_ATTEMPTS
          - LOADKIT_CATALOG (path to a catalog JSON file)
        """
        data: dict[str, Any] = {}

        # File
        data.update(_try_load_json(Path(path) if path else None))
        data.pop("style_timeout_ms", None)

        # Env
        interval = _env_int("LOADKIT_STYLE_POLL_INTERVAL_MS")
        if interval is not None:
            data["style_poll_interval_ms"] = interval
        attempts = _env_int("LOADKIT_STYLE_POLL_ATTEMPTS")
        if attempts is not None:
            data["style_poll_attempts"] = attempts
        if os.getenv("LOADKIT_CATALOG"):
            data["catalog_path"] = os.environ["LOADKIT_CATALOG"]

        # Overrides
        if overrides:
            data.update(overrides)

        return cls(**data)
