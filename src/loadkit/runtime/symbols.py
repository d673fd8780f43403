# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Readiness-symbol resolution.

A loaded script announces that it has finished initializing by defining a
value somewhere under the root scope (for example `MathJax.Hub`). The resolver
walks such a dotted path and only accepts the leaf when its immediate parent
owns it: a key of a mapping, or an entry of an object's instance `__dict__`.
Class attributes and inherited members are not a readiness signal.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..core.logging import get_logger

_log = get_logger("symbols")

_MISSING = object()


@dataclass(frozen=True)
class SymbolLookup:
    """Successful lookup: the scope that directly holds the leaf, and the leaf value."""

    scope: Any
    value: Any


def _child(scope: Any, name: str) -> Any:
    if isinstance(scope, Mapping):
        return scope.get(name, _MISSING)
    return getattr(scope, name, _MISSING)


def owns(scope: Any, name: str) -> bool:
    """True when `name` is held directly by `scope` rather than inherited."""
    if isinstance(scope, Mapping):
        return name in scope
    own = getattr(scope, "__dict__", None)
    return isinstance(own, Mapping) and name in own


def resolve_symbol(root: Any, expression: str) -> SymbolLookup | None:
    """
    Resolve `expression` (e.g. "a.b.c") against `root`.

    Returns a `SymbolLookup` on success, or None when any intermediate segment
    is missing or falsy, or when the last segment is not owned by its parent.
    """
    path = expression.split(".")
    scope = root
    prop: str | None = None

    for prop in path[:-1]:
        if not scope:
            break
        scope = _child(scope, prop)
        if scope is _MISSING:
            scope = None
            break
    else:
        prop = path[-1]
        if scope and owns(scope, prop):
            return SymbolLookup(scope=scope, value=_child(scope, prop))

    _log.warning(
        f'"{expression}" did not evaluate to a value. Last property tried: {prop}',
        event="symbol.not_found",
        expression=expression,
        prop=prop,
    )
    return None
