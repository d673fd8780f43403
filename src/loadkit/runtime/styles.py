# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Stylesheet injection.

A `<link rel="stylesheet">` gives no dependable completion signal, so after
attaching it we poll the element until its `style` interface is populated.
Each stylesheet is attached once per `(owner, url)` cache key; the poll runs
every `style_poll_interval_ms` and gives up after `style_poll_attempts` checks.
"""

import asyncio
import re
from collections.abc import Iterable
from typing import Any, List

from ..api.document import Document, Element
from ..api.errors import ReadinessTimeoutError
from ..core.config import LoaderConfig
from ..core.logging import get_logger
from ..core.time import Clock, SystemClock
from ..core.types import CacheKey, LibraryId, Url
from ..observability.metrics import LoaderMetrics, default_metrics
from .cache import ResourceCache
from .dom import append_to_singleton, create_element

_SEPARATORS = re.compile(r"[/\\]")


def stylesheet_key(owner_id: LibraryId, url: Url) -> CacheKey:
    """Cache key (and element id) for a stylesheet requested on behalf of `owner_id`."""
    return f"{owner_id}-{_SEPARATORS.sub('-', url)}"


class StylesheetInjector:
    def __init__(
        self,
        document: Document,
        *,
        cache: ResourceCache | None = None,
        config: LoaderConfig | None = None,
        clock: Clock | None = None,
        metrics: LoaderMetrics | None = None,
    ) -> None:
        self._log = get_logger("styles")
        self._document = document
        self._cfg = config or LoaderConfig()
        self._clock = clock or SystemClock()
        self._metrics = metrics or default_metrics()
        self._cache = cache if cache is not None else ResourceCache(metrics=self._metrics)

    async def inject(self, urls: Iterable[Url], owner_id: LibraryId) -> List[Element]:
        """
        Attach every stylesheet in `urls` (once per key) and wait until all are parsed.

        Returns the link elements in request order. Fails with
        `ReadinessTimeoutError` if any of them never becomes ready.
        """
        futures = []
        for url in urls:
            key = stylesheet_key(owner_id, url)
            futures.append(self._cache.get_or_create(key, lambda k=key, u=url: self._start(k, u), kind="stylesheet"))
        if not futures:
            return []
        return list(await asyncio.shield(asyncio.gather(*futures)))

    # ---- internal

    def _start(self, key: CacheKey, url: Url) -> Any:
        link = create_element(
            self._document,
            "link",
            {"rel": "stylesheet", "type": "text/css", "href": url, "id": key},
        )
        ready = self._wait_until_parsed(link, key, url)
        try:
            append_to_singleton(self._document, "head", link)
        except Exception:
            ready.close()
            raise
        self._log.debug("stylesheet attached", event="style.injected", cache_key=key, url=url)
        return ready

    async def _wait_until_parsed(self, link: Element, key: CacheKey, url: Url) -> Element:
        started = self._clock.mono_ms()
        for attempt in range(1, self._cfg.style_poll_attempts + 1):
            await self._clock.sleep_ms(self._cfg.style_poll_interval_ms)
            if getattr(link, "style", None):
                elapsed_ms = self._clock.mono_ms() - started
                self._metrics.observe_style_ready(elapsed_ms / 1000.0)
                self._metrics.injection("stylesheet", "ok")
                self._log.debug(
                    "stylesheet ready", event="style.ready", cache_key=key, url=url, attempts=attempt, elapsed_ms=elapsed_ms
                )
                return link

        self._metrics.injection("stylesheet", "timeout")
        self._log.warning(
            "stylesheet readiness timed out",
            event="style.timeout",
            cache_key=key,
            url=url,
            attempts=self._cfg.style_poll_attempts,
            timeout_ms=self._cfg.style_timeout_ms,
        )
        raise ReadinessTimeoutError(
            f"Timeout waiting for stylesheet {url} ({self._cfg.style_timeout_ms}ms)",
            url=url,
        )
