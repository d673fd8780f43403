# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Single-flight resource cache.

Maps a cache key to one shared `asyncio.Future`. The first request for a key
registers a pending future *before* it calls the factory, so any request that
arrives while the work is still running joins the same future. Once settled,
a future is replayed as-is to every later caller, failures included.

Entries are never evicted automatically; `invalidate()` is the only way to
start a fresh attempt for a key.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterator
from typing import Any, Dict, Optional

from ..core.logging import get_logger
from ..core.types import CacheKey
from ..observability.metrics import LoaderMetrics

Factory = Callable[[], Awaitable[Any]]


class ResourceCache:
    """
    Explicit memoization table for in-flight and completed injections.

    Usage:

        cache = ResourceCache()
        fut = cache.get_or_create("MathJax", lambda: inject(...))
        element = await asyncio.shield(fut)

    Callers should await entries through `asyncio.shield()` so a cancelled
    caller does not cancel the outcome shared with everyone else.
    """

    def __init__(self, *, metrics: LoaderMetrics | None = None, kind: str = "resource") -> None:
        self._log = get_logger("cache")
        self._entries: Dict[CacheKey, asyncio.Future] = {}
        self._metrics = metrics
        self._kind = kind

    # ---- lookup

    def get(self, key: CacheKey) -> Optional[asyncio.Future]:
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> Iterator[CacheKey]:
        return iter(list(self._entries.keys()))

    # ---- single-flight

    def get_or_create(self, key: CacheKey, factory: Factory, *, kind: str | None = None) -> asyncio.Future:
        """
        Return the future registered for `key`, creating it with `factory` on first use.

        `factory` is invoked synchronously, exactly once per key, and must return an
        awaitable. Its result or exception becomes the outcome of the entry. A factory
        that raises immediately fails the entry just the same.
        """
        kind = kind or self._kind
        fut = self._entries.get(key)
        if fut is not None:
            self._log.debug("cache hit", event="cache.hit", cache_key=key, kind=kind, settled=fut.done())
            if self._metrics is not None:
                self._metrics.cache_request(kind, hit=True)
            return fut

        loop = asyncio.get_running_loop()
        fut = loop.create_future()
        self._entries[key] = fut
        fut.add_done_callback(lambda f: self._on_settled(key, kind, f))
        self._log.debug("cache miss", event="cache.miss", cache_key=key, kind=kind)
        if self._metrics is not None:
            self._metrics.cache_request(kind, hit=False)

        try:
            work = asyncio.ensure_future(factory())
        except Exception as e:
            fut.set_exception(e)
            return fut

        work.add_done_callback(lambda w: _transfer(w, fut))
        return fut

    # ---- lifecycle

    def invalidate(self, key: CacheKey) -> bool:
        """
        Forget the entry for `key` so the next request starts a new attempt.

        Callers already awaiting the old future still observe its outcome.
        Returns True if an entry was removed.
        """
        fut = self._entries.pop(key, None)
        if fut is None:
            return False
        self._log.info("cache entry invalidated", event="cache.invalidate", cache_key=key, settled=fut.done())
        return True

    def clear(self) -> None:
        for key in list(self._entries.keys()):
            self.invalidate(key)

    # ---- internal

    def _on_settled(self, key: CacheKey, kind: str, fut: asyncio.Future) -> None:
        if fut.cancelled():
            self._log.warning("cache entry cancelled", event="cache.cancelled", cache_key=key, kind=kind)
            return
        exc = fut.exception()
        if exc is not None:
            self._log.warning(
                "cache entry failed",
                event="cache.failed",
                cache_key=key,
                kind=kind,
                reason=str(exc),
                error_type=type(exc).__name__,
            )


def _transfer(src: asyncio.Future, dst: asyncio.Future) -> None:
    if dst.done():
        return
    if src.cancelled():
        dst.cancel()
        return
    exc = src.exception()
    if exc is not None:
        dst.set_exception(exc)
    else:
        dst.set_result(src.result())
