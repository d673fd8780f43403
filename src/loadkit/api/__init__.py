# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Public protocol and error types for integrators.
"""

from .document import Document, Element, EventCallback
from .errors import (
    ConfigurationError,
    CyclicDependencyError,
    ErrorKind,
    LoadError,
    LoaderError,
    ReadinessTimeoutError,
    SymbolNotFoundError,
)

__all__ = [
    "ConfigurationError",
    "CyclicDependencyError",
    "Document",
    "Element",
    "ErrorKind",
    "EventCallback",
    "LoadError",
    "LoaderError",
    "ReadinessTimeoutError",
    "SymbolNotFoundError",
]
