# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Script injection.

A script is identified by its readiness symbol, not by its url: two catalog
entries that declare the same `definesSymbol` share one cache entry and one
`<script>` element. After the document signals `load`, the symbol is looked up
under the injected root scope; only when it resolves is the script considered
ready. When asked to, the resolved symbol is invoked once as an initializer,
with its owning scope as receiver when it is a plain function on an object.

There is no timeout: if the document never fires `load` or `error`, callers
keep waiting.
"""

import asyncio
import inspect
import types
from collections.abc import Callable, Mapping
from typing import Any

from ..api.document import Document, Element
from ..api.errors import LoadError, LoaderError, SymbolNotFoundError
from ..core.config import LoaderConfig
from ..core.logging import get_logger, warn_once
from ..core.types import CacheKey, SymbolPath, Url
from ..observability.metrics import LoaderMetrics, default_metrics
from .cache import ResourceCache
from .dom import append_to_singleton, create_element
from .symbols import SymbolLookup, resolve_symbol


class ScriptInjector:
    def __init__(
        self,
        document: Document,
        root: Any,
        *,
        cache: ResourceCache | None = None,
        config: LoaderConfig | None = None,
        metrics: LoaderMetrics | None = None,
    ) -> None:
        self._log = get_logger("scripts")
        self._document = document
        self._root = root
        self._cfg = config or LoaderConfig()
        self._metrics = metrics or default_metrics()
        self._cache = cache if cache is not None else ResourceCache(metrics=self._metrics)

    async def inject(self, script_url: Url, defines_symbol: SymbolPath | None, invoke: bool = False) -> Element:
        """
        Attach `script_url` once per readiness symbol and wait until it is ready.

        Raises `LoadError` when the document reports an error (or the invoked
        symbol raises) and `SymbolNotFoundError` when the script loaded but
        `defines_symbol` does not resolve.
        """
        if invoke and not defines_symbol:
            warn_once(
                self._log,
                f"script.invoke_without_symbol:{script_url}",
                "invoke requested without a readiness symbol; nothing will be invoked",
                url=script_url,
            )
        key: CacheKey = defines_symbol or script_url
        fut = self._cache.get_or_create(
            key, lambda: self._start(script_url, defines_symbol, invoke), kind="script"
        )
        return await asyncio.shield(fut)

    # ---- internal

    def _start(self, url: Url, symbol: SymbolPath | None, invoke: bool) -> asyncio.Future:
        done: asyncio.Future = asyncio.get_running_loop().create_future()

        script = create_element(
            self._document,
            "script",
            {
                "async": True,
                "defer": True,
                "charset": self._cfg.script_charset,
                "type": self._cfg.script_type,
                "src": url,
            },
        )

        def _fail(err: LoaderError, result: str) -> None:
            self._metrics.injection("script", result)
            self._log.warning(str(err), event="script.failed", url=url, expression=symbol, kind=err.kind.value)
            done.set_exception(err)

        def _on_error(event: Any = None) -> None:
            if done.done():
                self._log.debug("late error signal ignored", event="script.signal.ignored", url=url)
                return
            _fail(LoadError(f"Failed to load script {url}", url=url, expression=symbol), "error")

        def _on_load(event: Any = None) -> None:
            if done.done():
                self._log.debug("late load signal ignored", event="script.signal.ignored", url=url)
                return
            lookup = resolve_symbol(self._root, symbol) if symbol else None
            if symbol and lookup is None:
                _fail(
                    SymbolNotFoundError(
                        f"Loaded, but expected interface was not found: {symbol}", url=url, expression=symbol
                    ),
                    "symbol_not_found",
                )
                return
            if invoke and lookup is not None:
                try:
                    _initializer(lookup)()
                except Exception as e:
                    err = LoadError(f"Invoking {symbol} failed: {e}", url=url, expression=symbol)
                    err.__cause__ = e
                    _fail(err, "error")
                    return
            self._metrics.injection("script", "ok")
            self._log.debug("script ready", event="script.loaded", url=url, expression=symbol, invoked=invoke)
            done.set_result(script)

        # Listeners go in before the element is attached: an already cached
        # resource may signal `load` synchronously during append.
        script.add_event_listener("error", _on_error)
        script.add_event_listener("load", _on_load)
        append_to_singleton(self._document, "body", script)
        self._log.debug("script attached", event="script.injected", url=url, expression=symbol)
        return done


def _initializer(lookup: SymbolLookup) -> Callable[[], Any]:
    """
    The zero-arg call that runs an invoked readiness symbol.

    A plain function stored on an object scope is called as a method of that
    scope: `App.init` runs as `init(App)`. Values under a mapping scope and
    callables other than plain functions are called with no arguments.
    """
    value, scope = lookup.value, lookup.scope
    if inspect.isfunction(value) and not isinstance(scope, Mapping):
        return types.MethodType(value, scope)
    return value
