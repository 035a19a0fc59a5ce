"""atomsync: reactive atoms with dependency tracking and server→client sync."""

from importlib.metadata import version as _version

__version__ = _version("atomsync")

from atomsync._tracking import connect, disconnect, get_pending_count, notify
from atomsync.atom import Atom, atom, is_atom, set_scheduler
from atomsync.action import action, batch, transaction
from atomsync.capture import capture, peek
from atomsync.computed import Computed, computed
from atomsync.reaction import effect, subscribe
from atomsync.mapped import mapped
from atomsync.observe import observe
from atomsync.errors import AtomsyncError, MisuseError, SuspensionError, SyncValidationError
from atomsync.clock import ManualClock, ThreadClock
# textual NOT auto-imported: opt-in only

__all__ = [
    "Atom",
    "atom",
    "is_atom",
    "set_scheduler",
    "capture",
    "peek",
    "connect",
    "disconnect",
    "notify",
    "batch",
    "action",
    "transaction",
    "get_pending_count",
    "Computed",
    "computed",
    "subscribe",
    "effect",
    "mapped",
    "observe",
    "ManualClock",
    "ThreadClock",
    "AtomsyncError",
    "MisuseError",
    "SuspensionError",
    "SyncValidationError",
]
