from __future__ import annotations

"""
loadkit.core.time
=================

Clocks for the stylesheet readiness poll. The poll only needs to pause between
checks and to measure how long a stylesheet took to become ready, so a clock
is a monotonic reading plus an async sleep.
"""

import asyncio
import time
from typing import Protocol

from .types import Millis, MonotonicMs


class Clock(Protocol):
    def mono_ms(self) -> MonotonicMs: ...
    async def sleep_ms(self, ms: Millis) -> None: ...


class SystemClock:
    """Event-loop clock used outside tests."""

    def mono_ms(self) -> MonotonicMs:
        return time.monotonic_ns() // 1_000_000

    async def sleep_ms(self, ms: Millis) -> None:
        await asyncio.sleep(max(0.0, ms / 1000.0))


class ManualClock:
    """
    Deterministic clock for tests.

    Time moves only through `sleep_ms`, which returns at once after yielding
    to the loop, so a full 30 s readiness budget runs in a few milliseconds.
    Every requested pause is kept in `sleeps`, one entry per poll check.
    """

    def __init__(self, start_ms: Millis = 0) -> None:
        self._now: MonotonicMs = start_ms
        self.sleeps: list[Millis] = []

    def mono_ms(self) -> MonotonicMs:
        return self._now

    @property
    def elapsed_ms(self) -> Millis:
        return sum(self.sleeps)

    async def sleep_ms(self, ms: Millis) -> None:
        step = max(0, int(ms))
        self.sleeps.append(step)
        self._now += step
        await asyncio.sleep(0)
