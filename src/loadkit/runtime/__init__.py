# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Loader runtime: symbol resolution, the single-flight cache and the injectors.
"""

from .cache import ResourceCache
from .dom import append_to_singleton, create_element
from .scripts import ScriptInjector
from .styles import StylesheetInjector, stylesheet_key
from .symbols import SymbolLookup, owns, resolve_symbol

__all__ = [
    "ResourceCache",
    "ScriptInjector",
    "StylesheetInjector",
    "SymbolLookup",
    "append_to_singleton",
    "create_element",
    "owns",
    "resolve_symbol",
    "stylesheet_key",
]
