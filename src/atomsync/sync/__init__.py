"""Server→client synchronization of atom state through diffs and patches."""

from atomsync.sync.client import ClientSyncer, client
from atomsync.sync.patch import NONE, apply, diff, is_none
from atomsync.sync.server import ServerSyncer, server
from atomsync.sync.validate import validate, validate_change

__all__ = [
    "NONE",
    "ClientSyncer",
    "ServerSyncer",
    "apply",
    "client",
    "diff",
    "is_none",
    "server",
    "validate",
    "validate_change",
]
