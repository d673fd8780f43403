from __future__ import annotations

# Runtime package version, taken from the installed distribution metadata.
try:
    from importlib.metadata import PackageNotFoundError, version as _pkg_version

    __version__ = _pkg_version("loadkit")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

from .api.errors import (
    ConfigurationError,
    CyclicDependencyError,
    ErrorKind,
    LoadError,
    LoaderError,
    ReadinessTimeoutError,
    SymbolNotFoundError,
)
from .catalog import LibraryCatalog, LibraryDescriptor
from .core.config import LoaderConfig
from .manager import LibraryManager
from .runtime.cache import ResourceCache
from .runtime.scripts import ScriptInjector
from .runtime.styles import StylesheetInjector
from .runtime.symbols import SymbolLookup, resolve_symbol

__all__ = [
    "ConfigurationError",
    "CyclicDependencyError",
    "ErrorKind",
    "LibraryCatalog",
    "LibraryDescriptor",
    "LibraryManager",
    "LoadError",
    "LoaderConfig",
    "LoaderError",
    "ReadinessTimeoutError",
    "ResourceCache",
    "ScriptInjector",
    "StylesheetInjector",
    "SymbolLookup",
    "SymbolNotFoundError",
    "__version__",
    "resolve_symbol",
]
