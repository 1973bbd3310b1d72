"""Adaptive-interval async poller."""

from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from runwatch.exceptions import PollerError
from runwatch.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class PollHandle(Generic[T]):
    """Controller for one running poll cycle."""

    poller: "Poller[Any]"
    initial_value: T | None = None
    task: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def running(self) -> bool:
        return self.poller.current_handle is self

    def stop(self) -> None:
        if self.running:
            self.poller.stop()

    async def wait_closed(self) -> None:
        """Wait until the loop behind this handle has exited."""
        if self.task is None:
            return
        try:
            # Shielded so cancelling the waiter leaves the poller to stop() itself.
            await asyncio.shield(self.task)
        except asyncio.CancelledError:
            # The poller being stopped is expected; a cancelled waiter propagates.
            waiter = asyncio.current_task()
            if waiter is not None and waiter.cancelling():
                raise


class Poller(Generic[T]):
    """Repeatedly awaits ``callback`` with a mutable delay between ticks.

    Ticks never overlap: the next wait starts only after the current tick has
    settled, and the delay is read when the wait starts.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        *,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.name = name
        self._callback = callback
        self._sleep = sleep
        self._interval = _validate_interval(interval)
        self._handle: PollHandle[T] | None = None
        self._task: asyncio.Task[None] | None = None
        self._ticking = False

    @property
    def interval(self) -> float:
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        value = _validate_interval(value)
        if value != self._interval:
            log.debug("poll interval changed", poller=self.name, old=self._interval, new=value)
        self._interval = value

    @property
    def current_handle(self) -> PollHandle[T] | None:
        return self._handle

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, *, initial_value: T | None = None) -> PollHandle[T]:
        """Start polling, or return the handle of the cycle already running."""
        if self._handle is not None:
            return self._handle

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise PollerError(self.name, "start() requires a running event loop") from e

        # A stopped cycle may still be finishing its last tick.
        previous = self._task if self._task is not None and not self._task.done() else None

        handle: PollHandle[T] = PollHandle(poller=self, initial_value=initial_value)
        self._handle = handle
        handle.task = loop.create_task(self._run(handle, previous), name=f"poller:{self.name}")
        self._task = handle.task
        log.debug("poller started", poller=self.name, interval=self._interval)
        return handle

    def stop(self) -> None:
        """Stop scheduling ticks. A tick already in flight runs to completion."""
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        if handle.task is not None and not self._ticking:
            handle.task.cancel()
        log.debug("poller stopped", poller=self.name, tick_in_flight=self._ticking)

    async def _run(self, handle: PollHandle[T], previous: asyncio.Task[None] | None) -> None:
        if previous is not None:
            await asyncio.wait({previous})

        while self._handle is handle:
            self._ticking = True
            try:
                await self._callback()
            except Exception as e:
                log.error("poll tick failed", poller=self.name, error=str(e))
            finally:
                self._ticking = False

            if self._handle is not handle:
                break
            await self._sleep(self._interval)


def _validate_interval(value: float) -> float:
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or value <= 0
    ):
        raise ValueError(f"Poll interval must be a positive number, got {value!r}")
    return value
