"""Client syncer: applies server payloads to local atoms."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from atomsync.action import transaction
from atomsync.atom import Atom
from atomsync.capture import peek
from atomsync.errors import MisuseError
from atomsync.sync.patch import apply

logger = logging.getLogger("atomsync.sync.client")


class ClientSyncer:
    """Mirrors a server's named atoms into local ones."""

    def __init__(self, atoms: Mapping[str, Atom]) -> None:
        self._atoms = dict(atoms)

    def sync(self, *payloads: dict) -> None:
        """Apply payloads in order, inside one batch.

        Subscribers see a single consolidated change per call, not one
        notification per atom or per payload.
        """
        with transaction():
            for payload in payloads:
                self._apply(payload)
        logger.debug("Applied %d payload(s)", len(payloads))

    def _apply(self, payload: dict) -> None:
        kind = payload.get("type")
        data = payload.get("data") or {}
        if kind == "init":
            for name, target in self._atoms.items():
                target.set(data.get(name))
        elif kind == "patch":
            for name, patch in data.items():
                target = self._atoms.get(name)
                if target is None:
                    logger.debug("Ignoring patch for unknown atom %r", name)
                    continue
                target.set(apply(peek(target), patch))
        else:
            raise MisuseError(f"unknown sync payload type {kind!r}")


def client(atoms: Mapping[str, Any]) -> ClientSyncer:
    """Create a client syncer.

    Usage:
        syncer = client({"score": score})
        connection.on_message(syncer.sync)
    """
    return ClientSyncer(atoms)
