"""Textual integration for atomsync. Opt-in: requires textual.

Widgets subscribe on mount and unsubscribe on unmount; these wrappers make
the callbacks safe to fire at any time in between. The guard, NoMatches
handling and thread marshaling live here so widget code stays plain.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from atomsync.capture import capture
from atomsync.reaction import effect as _effect, subscribe as _subscribe

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded callbacks during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def subscribe(app, molecule, callback):
    """subscribe() that safely bridges to Textual widgets.

    Skips callbacks while the app is paused or not running, swallows
    NoMatches from widget queries, and marshals cross-thread calls via
    call_from_thread. Returns the unsubscribe function.
    """
    _main = threading.get_ident()

    def _guarded(state, prev):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, state, prev)
        else:
            _safe(state, prev)

    def _safe(state, prev):
        try:
            callback(state, prev)
        except NoMatches:
            pass

    return _subscribe(molecule, _guarded)


def effect(app, fn):
    """effect() that safely bridges to Textual widgets.

    When a run is skipped or marshaled to the app thread, the atoms read by
    the last tracked run are read again so the effect keeps listening. A
    cleanup returned by a marshaled run still goes back to the effect.
    """
    _main = threading.get_ident()
    dependencies = set()

    def _guarded():
        nonlocal dependencies
        if is_safe(app) and threading.get_ident() == _main:
            dependencies, cleanup = capture(_safe)
            return cleanup
        for dependency in dependencies:
            dependency.get()
        if is_safe(app):
            return app.call_from_thread(_safe)
        return None

    def _safe():
        try:
            return fn()
        except NoMatches:
            return None

    return _effect(_guarded)
