# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Error taxonomy for the library loader.

Every failure surfaced by `LibraryManager.ensure()` and the injectors is a
`LoaderError`. Failures are cached together with the resource they belong to,
so the same exception instance is replayed to every caller sharing a cache key.
None of these are retried by the loader.
"""

from enum import Enum
from typing import Sequence


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    LOAD = "load"
    READINESS_TIMEOUT = "readiness_timeout"
    SYMBOL_NOT_FOUND = "symbol_not_found"


class LoaderError(Exception):
    """
    Base class for all loader errors.

    `str(exc)` is the human-readable reason; the structured fields name the
    offending library, readiness expression or url where they are known.
    """

    kind: ErrorKind = ErrorKind.LOAD

    def __init__(
        self,
        reason: str,
        *,
        library_id: str | None = None,
        expression: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.library_id = library_id
        self.expression = expression
        self.url = url


class ConfigurationError(LoaderError):
    """A catalog descriptor is malformed, or is missing its `url` or its `definesSymbol` expression."""

    kind = ErrorKind.CONFIGURATION


class CyclicDependencyError(ConfigurationError):
    """A descriptor depends on itself, directly or transitively."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(
            "Cyclic dependency between external libraries: " + " -> ".join(self.cycle),
            library_id=self.cycle[-1] if self.cycle else None,
        )


class LoadError(LoaderError):
    """The document reported a load error, or the readiness callable raised."""

    kind = ErrorKind.LOAD


class ReadinessTimeoutError(LoaderError):
    """A stylesheet never exposed a style interface within the poll budget."""

    kind = ErrorKind.READINESS_TIMEOUT


class SymbolNotFoundError(LoaderError):
    """A script loaded, but its readiness symbol did not resolve."""

    kind = ErrorKind.SYMBOL_NOT_FOUND
