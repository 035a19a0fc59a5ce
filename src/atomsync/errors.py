"""Exceptions raised by atomsync.

Errors thrown by user code (molecules, listeners, effect bodies) are not
wrapped: they propagate unchanged after tracking state has been restored.
"""

from __future__ import annotations


class AtomsyncError(Exception):
    """Base class for errors raised by atomsync itself."""


class SuspensionError(AtomsyncError, RuntimeError):
    """Tracked code tried to suspend instead of running to completion."""


class MisuseError(AtomsyncError, RuntimeError):
    """An API was called in a state where it cannot work."""


class SyncValidationError(AtomsyncError, ValueError):
    """A value cannot be sent over the sync protocol."""

    def __init__(self, message: str, path: tuple = ()) -> None:
        self.path = path
        where = ".".join(str(p) for p in path) or "<root>"
        super().__init__(f"{message} at {where}")
