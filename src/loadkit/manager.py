# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
External library manager.

Composes the catalog, the shared resource cache and the two injectors:

    manager = LibraryManager(catalog, document, root=window)
    await manager.ensure("mathjax")               # -> script element
    await manager.ensure(["jquery", "select2"])   # -> [element, element]

`ensure()` first ensures every declared dependency, then attaches the
library's stylesheets and waits for them, then attaches its script and waits
for the readiness symbol. Each stylesheet and script is attached at most once
for the lifetime of the manager, however many callers ask for it.
"""

import asyncio
from collections.abc import Iterable, Sequence
from typing import Any, List, Union

from .api.document import Document, Element
from .api.errors import ConfigurationError, CyclicDependencyError
from .catalog import CatalogSource, LibraryCatalog, read_catalog
from .core.config import LoaderConfig
from .core.logging import get_logger, log_context
from .core.time import Clock, SystemClock
from .core.types import LibraryId, SymbolPath, Url
from .observability.metrics import LoaderMetrics, default_metrics
from .observability.tracing import trace
from .runtime.cache import ResourceCache
from .runtime.scripts import ScriptInjector
from .runtime.styles import StylesheetInjector


class LibraryManager:
    """
    Loads external libraries on demand, dependencies first.

    Args:
        catalog: a `LibraryCatalog`, a raw id -> descriptor mapping, or a
            zero-arg callable returning either. Read once per `ensure()` call;
            the whole dependency walk of that call sees the same catalog.
        document: the document environment that attaches elements.
        root: root scope the readiness symbols are resolved against.
        cache: shared single-flight cache; a private one is created if omitted.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        document: Document,
        *,
        root: Any,
        cache: ResourceCache | None = None,
        config: LoaderConfig | None = None,
        clock: Clock | None = None,
        metrics: LoaderMetrics | None = None,
    ) -> None:
        self._log = get_logger("manager")
        self._catalog = catalog
        self._cfg = config or LoaderConfig()
        self._metrics = metrics or default_metrics()
        self.cache = cache if cache is not None else ResourceCache(metrics=self._metrics)
        self.styles = StylesheetInjector(
            document, cache=self.cache, config=self._cfg, clock=clock or SystemClock(), metrics=self._metrics
        )
        self.scripts = ScriptInjector(document, root, cache=self.cache, config=self._cfg, metrics=self._metrics)

    @classmethod
    def from_config(
        cls, config: LoaderConfig, document: Document, *, root: Any, **kwargs: Any
    ) -> LibraryManager:
        """Build a manager whose catalog comes from `config.catalog_path`."""
        if not config.catalog_path:
            raise ValueError("LoaderConfig.catalog_path is not set")
        return cls(LibraryCatalog.from_file(config.catalog_path), document, root=root, config=config, **kwargs)

    # ---- public API

    @trace("loadkit.ensure")
    async def ensure(self, lib_id: Union[LibraryId, Sequence[LibraryId]]) -> Union[Element, List[Element]]:
        """
        Ensure one library (or several) is loaded and initialized.

        A sequence of ids is ensured concurrently and returns results in the same order.
        Raises `ConfigurationError` for malformed descriptors or ones missing
        `url`/`definesSymbol` (before anything is attached) and
        `CyclicDependencyError` for cycles.
        """
        catalog = read_catalog(self._catalog)
        if not isinstance(lib_id, str):
            return await self._ensure_all(lib_id, (), catalog)
        return await self._ensure_one(lib_id, (), catalog)

    async def inject_styles(self, urls: Iterable[Url], owner_id: LibraryId) -> List[Element]:
        """Attach stylesheets directly, bypassing the catalog."""
        return await self.styles.inject(urls, owner_id)

    async def inject_script(self, url: Url, defines_symbol: SymbolPath | None, invoke: bool = False) -> Element:
        """Attach a script directly, bypassing the catalog."""
        return await self.scripts.inject(url, defines_symbol, invoke)

    # ---- internal

    async def _ensure_all(
        self, ids: Iterable[LibraryId], chain: tuple[LibraryId, ...], catalog: LibraryCatalog
    ) -> List[Element]:
        return list(await asyncio.gather(*(self._ensure_one(x, chain, catalog) for x in ids)))

    async def _ensure_one(self, lib_id: LibraryId, chain: tuple[LibraryId, ...], catalog: LibraryCatalog) -> Element:
        if lib_id in chain:
            cycle = chain[chain.index(lib_id) :] + (lib_id,)
            self._log.error("cyclic library dependency", event="library.cycle", cycle=list(cycle))
            raise CyclicDependencyError(cycle)

        lib = catalog.lookup(lib_id)

        if not lib.url:
            raise ConfigurationError(f"No {lib_id} Library (properly) Defined", library_id=lib_id)
        if not lib.defines_symbol:
            raise ConfigurationError(
                f'Library {lib_id} should have an expression for "definesSymbol"', library_id=lib_id
            )

        with log_context(library_id=lib_id):
            self._log.debug(
                "ensuring library",
                event="library.ensure",
                dependencies=list(lib.dependencies),
                stylesheets=len(lib.stylesheets),
            )
            if lib.dependencies:
                await self._ensure_all(lib.dependencies, chain + (lib_id,), catalog)
            await self.styles.inject(lib.stylesheets, lib_id)
            element = await self.scripts.inject(lib.url, lib.defines_symbol, lib.invoke_defined_symbol)
            self._log.debug("library ready", event="library.ready", url=lib.url)
            return element
