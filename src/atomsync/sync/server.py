"""Server syncer: turns local atom writes into a stream of patches.

Every change to a synced atom records a new snapshot. On each tick (or an
explicit flush()) the snapshots recorded since the last flush are diffed
pairwise and sent to every recipient, and history is reset to the latest
snapshot.
"""

from __future__ import annotations

import functools
import logging
from itertools import pairwise
from typing import Any, Callable, Iterable, Mapping

from atomsync.atom import Atom, is_same
from atomsync.capture import peek
from atomsync.errors import MisuseError
from atomsync.reaction import Cleanup, subscribe
from atomsync.sync.patch import diff
from atomsync.sync.validate import validate as validate_value, validate_change

logger = logging.getLogger("atomsync.sync.server")

Broadcast = Callable[..., None]


class ServerSyncer:
    """Tracks a set of named atoms and broadcasts their changes.

    interval is the tick period in seconds: 0 flushes on every clock tick,
    a negative interval disables the clock and leaves flushing to the host.
    With preserve_history, each change is sent as its own patch; without
    it, changes between two flushes collapse into one.
    """

    def __init__(
        self,
        atoms: Mapping[str, Atom],
        *,
        interval: float = 0,
        preserve_history: bool = False,
        clock=None,
        recipients: Callable[[], Iterable[Any]] | None = None,
        validate: bool | None = None,
    ) -> None:
        self._atoms = dict(atoms)
        self._interval = interval
        self._preserve_history = preserve_history
        self._clock = clock
        self._recipients = recipients
        self._validate = __debug__ if validate is None else validate
        self._snapshots: list[dict] = [self._snapshot()]
        self._callback: Broadcast | None = None
        self._cleanups: list[Cleanup] = []
        self._elapsed = 0.0

    @property
    def connected(self) -> bool:
        return self._callback is not None

    @property
    def snapshots(self) -> list[dict]:
        """Snapshots recorded since the last flush, oldest first."""
        return list(self._snapshots)

    def _snapshot(self) -> dict:
        snapshot = {}
        for name, source in self._atoms.items():
            state = peek(source)
            if state is not None:
                snapshot[name] = state
        return snapshot

    def _record(self, name: str, state: Any, prev: Any) -> None:
        latest = self._snapshots[-1]
        snapshot = dict(latest)
        if state is None:
            snapshot.pop(name, None)
        else:
            snapshot[name] = state

        if not self._preserve_history:
            if len(self._snapshots) == 1:
                self._snapshots.append(snapshot)
            else:
                self._snapshots[-1] = snapshot
            return

        if len(self._snapshots) >= 2 and _reverts(self._snapshots[-2], latest, snapshot, name):
            self._snapshots.pop()
            return
        self._snapshots.append(snapshot)

    def connect(self, callback: Broadcast) -> Cleanup:
        """Start syncing; callback(recipient, *payloads) sends payloads.

        Returns a function that stops syncing.
        """
        if self._callback is not None:
            raise MisuseError("server syncer is already connected")
        if self._recipients is None:
            raise MisuseError("server syncer needs recipients to broadcast to")
        if self._interval >= 0 and self._clock is None:
            raise MisuseError("server syncer needs a clock when interval >= 0")

        self._callback = callback
        self._snapshots = [self._snapshot()]
        self._elapsed = 0.0
        for name, source in self._atoms.items():
            self._cleanups.append(subscribe(source, functools.partial(self._record, name)))
        if self._interval >= 0:
            self._cleanups.append(self._clock.on_tick(self._tick))
        logger.info("Server syncer connected: %d atoms, interval=%s", len(self._atoms), self._interval)

        def disconnect() -> None:
            if self._callback is not callback:
                return
            self._callback = None
            cleanups, self._cleanups = self._cleanups, []
            for cleanup in cleanups:
                cleanup()
            logger.info("Server syncer disconnected")

        return disconnect

    def _tick(self, dt: float) -> None:
        self._elapsed += dt
        if self._elapsed >= self._interval:
            self._elapsed = 0.0
            self.flush()

    def hydrate(self, recipient: Any) -> None:
        """Send the full current state to one recipient, e.g. when it joins."""
        if self._callback is None:
            raise MisuseError("hydrate() called before connect()")
        snapshot = self._snapshots[-1]
        if self._validate:
            validate_value(snapshot)
        self._callback(recipient, {"type": "init", "data": snapshot})

    def flush(self) -> None:
        """Send every patch recorded since the last flush to all recipients."""
        if self._callback is None:
            raise MisuseError("flush() called before connect()")
        snapshots = self._snapshots
        if len(snapshots) < 2:
            return
        if self._validate:
            for prev, next in pairwise(snapshots):
                validate_value(next)
                validate_change(prev, next)
        self._snapshots = [snapshots[-1]]

        payloads = []
        for prev, next in pairwise(snapshots):
            patch = diff(prev, next)
            if patch:
                payloads.append({"type": "patch", "data": patch})
        if not payloads:
            return

        recipients = list(self._recipients())
        for recipient in recipients:
            self._callback(recipient, *payloads)
        logger.debug("Flushed %d patch(es) to %d recipient(s)", len(payloads), len(recipients))


def _reverts(before: dict, latest: dict, snapshot: dict, name: str) -> bool:
    """Whether snapshot undoes the change from before to latest."""
    if before.keys() != snapshot.keys():
        return False
    for key, value in before.items():
        if key == name:
            if not is_same(value, snapshot[key]):
                return False
        elif not is_same(value, latest.get(key)):
            return False
    return True


def server(atoms: Mapping[str, Atom], **options: Any) -> ServerSyncer:
    """Create a server syncer.

    Usage:
        clock = ManualClock()
        syncer = server({"score": score}, clock=clock, recipients=lambda: players)
        syncer.connect(lambda player, *payloads: player.send(payloads))
        syncer.hydrate(new_player)
        clock.advance(1 / 60)  # flushes pending patches
    """
    return ServerSyncer(atoms, **options)
