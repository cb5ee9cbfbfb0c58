"""Timer primitives shared by the tutorial sequencer and its host."""

from __future__ import annotations

import heapq
import itertools
import threading
from typing import Callable, List, Optional, Tuple

Callback = Callable[[], None]


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    def __init__(self) -> None:
        self._cancelled = False
        self._on_cancel: Optional[Callback] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()


class Scheduler:
    """Abstract source of one-shot and repeating timers."""

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:  # pragma: no cover - interface
        raise NotImplementedError

    def call_every(self, interval: float, callback: Callback) -> TimerHandle:  # pragma: no cover - interface
        raise NotImplementedError


class ThreadingScheduler(Scheduler):
    """Runs callbacks on daemon ``threading.Timer`` threads."""

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle()

        def run() -> None:
            if not handle.cancelled:
                callback()

        timer = threading.Timer(max(delay, 0.0), run)
        timer.daemon = True
        handle._on_cancel = timer.cancel
        timer.start()
        return handle

    def call_every(self, interval: float, callback: Callback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = TimerHandle()

        def tick() -> None:
            if handle.cancelled:
                return
            callback()
            if not handle.cancelled:
                arm()

        def arm() -> None:
            timer = threading.Timer(interval, tick)
            timer.daemon = True
            handle._on_cancel = timer.cancel
            timer.start()

        arm()
        return handle


class ManualScheduler(Scheduler):
    """Virtual clock that only moves when :meth:`advance` is called."""

    def __init__(self) -> None:
        self._now = 0.0
        self._counter = itertools.count()
        self._queue: List[Tuple[float, int, TimerHandle, Callback, Optional[float]]] = []

    @property
    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        return self._push(max(delay, 0.0), callback, None)

    def call_every(self, interval: float, callback: Callback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._push(interval, callback, interval)

    def _push(self, delay: float, callback: Callback, interval: Optional[float]) -> TimerHandle:
        handle = TimerHandle()
        heapq.heappush(self._queue, (self._now + delay, next(self._counter), handle, callback, interval))
        return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running every callback that falls due in order."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, handle, callback, interval = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, due)
            callback()
            if interval is not None and not handle.cancelled:
                heapq.heappush(self._queue, (due + interval, next(self._counter), handle, callback, interval))
        self._now = target

    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry[2].cancelled)


class Debouncer:
    """Trailing debounce: only the last call inside ``wait`` seconds runs."""

    def __init__(self, scheduler: Scheduler, wait: float, callback: Callable[..., None]) -> None:
        self._scheduler = scheduler
        self._wait = wait
        self._callback = callback
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._handle is not None

    def __call__(self, *args: object) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._generation += 1
            generation = self._generation
            self._handle = self._scheduler.call_later(self._wait, lambda: self._fire(generation, args))

    def _fire(self, generation: int, args: Tuple[object, ...]) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._handle = None
        self._callback(*args)

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None


__all__ = ["Debouncer", "ManualScheduler", "Scheduler", "ThreadingScheduler", "TimerHandle"]
