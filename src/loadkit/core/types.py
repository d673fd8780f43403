from __future__ import annotations

"""
loadkit.core.types
==================

Shared type aliases and small constants used across the codebase.
Keep this module **tiny** and dependency-free.
"""

import os
from pathlib import Path
from typing import Final, Union

StrPath = Union[str, os.PathLike[str], Path]

# ---- Time & IDs --------------------------------------------------------------

Millis = int
MonotonicMs = int  # process-local monotonic time (ms)

LibraryId = str
CacheKey = str
SymbolPath = str  # dotted path, e.g. "MathJax.Hub.Config"
Url = str

# ---- Constants ---------------------------------------------------------------

# Config key under which an application config carries the library catalog.
CATALOG_CONFIG_KEY: Final[str] = "external-libraries"

DEFAULT_STYLE_POLL_INTERVAL_MS: Final[int] = 10
DEFAULT_STYLE_POLL_ATTEMPTS: Final[int] = 3000

DEFAULT_SCRIPT_CHARSET: Final[str] = "utf-8"
DEFAULT_SCRIPT_TYPE: Final[str] = "text/javascript"


__all__ = [
    "StrPath",
    "Millis",
    "MonotonicMs",
    "LibraryId",
    "CacheKey",
    "SymbolPath",
    "Url",
    "CATALOG_CONFIG_KEY",
    "DEFAULT_STYLE_POLL_INTERVAL_MS",
    "DEFAULT_STYLE_POLL_ATTEMPTS",
    "DEFAULT_SCRIPT_CHARSET",
    "DEFAULT_SCRIPT_TYPE",
]
