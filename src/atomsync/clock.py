"""Host clocks: the frame tick that drives a server syncer.

A clock is any object with ``on_tick(callback) -> disconnect`` that calls
``callback(dt)`` with the seconds elapsed since the previous tick.

ManualClock suits hosts that already own a frame loop. ThreadClock runs a
daemon thread and marshals every tick onto the owning thread through the
scheduler (see set_scheduler), so syncing stays single-threaded.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from atomsync.atom import get_scheduler
from atomsync.errors import MisuseError

logger = logging.getLogger("atomsync.clock")

TickCallback = Callable[[float], None]
Disconnect = Callable[[], None]


class ManualClock:
    """Clock advanced by the host: call advance(dt) once per frame."""

    def __init__(self) -> None:
        self._callbacks: list[TickCallback] = []

    def on_tick(self, callback: TickCallback) -> Disconnect:
        """Register a tick callback. Returns a function that removes it."""
        self._callbacks.append(callback)

        def _disconnect() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass  # already removed

        return _disconnect

    def advance(self, dt: float) -> None:
        for callback in list(self._callbacks):
            callback(dt)


class ThreadClock(ManualClock):
    """Clock ticking `rate` times per second from a daemon thread.

    Ticks are handed to the scheduler (the one given here, else the global
    one from set_scheduler) so callbacks run on the owning thread. Call
    dispose() to stop the thread.
    """

    def __init__(self, rate: float = 60.0, scheduler: Callable | None = None) -> None:
        super().__init__()
        self._period = 1.0 / rate
        self._scheduler = scheduler
        self._thread: threading.Thread | None = None
        self._disposed = threading.Event()

    @property
    def disposed(self) -> bool:
        return self._disposed.is_set()

    def on_tick(self, callback: TickCallback) -> Disconnect:
        scheduler = None
        if self._thread is None:
            scheduler = self._scheduler or get_scheduler()
            if scheduler is None:
                raise MisuseError("ThreadClock needs a scheduler; call set_scheduler() first")
        disconnect = super().on_tick(callback)
        if scheduler is not None:
            self._thread = threading.Thread(target=self._run, args=(scheduler,), daemon=True)
            self._thread.start()
            logger.debug("Thread clock started at %.1f Hz", 1.0 / self._period)
        return disconnect

    def _run(self, scheduler: Callable) -> None:
        last = time.monotonic()
        while not self._disposed.wait(self._period):
            now = time.monotonic()
            dt, last = now - last, now
            scheduler(lambda dt=dt: self.advance(dt))

    def dispose(self) -> None:
        """Stop ticking. Safe to call more than once."""
        if not self._disposed.is_set():
            self._disposed.set()
            logger.debug("Thread clock stopped")
