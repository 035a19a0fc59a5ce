"""Tests for capture, peek, notify and listener edges."""

import gc

import pytest

from atomsync import SuspensionError, atom, capture, connect, disconnect, notify, peek
from atomsync._tracking import capturing, listener_count


class TestCapture:
    def test_collects_reads(self):
        a, b = atom(1), atom(2)
        dependencies, result = capture(lambda: a() + b())
        assert dependencies == {a, b}
        assert result == 3

    def test_order_does_not_matter(self):
        a, b = atom(1), atom(2)
        first, _ = capture(lambda: (a(), b()))
        second, _ = capture(lambda: (b(), a()))
        assert first == second == {a, b}

    def test_atom_short_circuit(self):
        a = atom("v")
        dependencies, result = capture(a)
        assert dependencies == {a}
        assert result == "v"

    def test_conditional_reads(self):
        flag, a, b = atom(True), atom(1), atom(2)
        dependencies, _ = capture(lambda: a() if flag() else b())
        assert dependencies == {flag, a}
        flag(False)
        dependencies, _ = capture(lambda: a() if flag() else b())
        assert dependencies == {flag, b}

    def test_nested_reads_reach_every_active_set(self):
        a, b = atom(1), atom(2)
        inner_deps = {}

        def outer():
            a()
            inner_deps["deps"], _ = capture(lambda: b())

        outer_deps, _ = capture(outer)
        assert inner_deps["deps"] == {b}
        assert outer_deps == {a, b}

    def test_restores_after_error(self):
        a = atom(1)

        def failing():
            a()
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            capture(failing)
        assert capturing.get() == ()

    def test_rejects_async_molecule(self):
        a = atom(1)

        async def molecule():
            return a()

        with pytest.raises(SuspensionError):
            capture(molecule)
        assert capturing.get() == ()

    def test_rejects_async_generator_molecule(self):
        a = atom(1)

        async def molecule():
            yield a()

        with pytest.raises(SuspensionError):
            capture(molecule)
        assert capturing.get() == ()


class TestPeek:
    def test_passes_values_through(self):
        value = {"k": 1}
        assert peek(value) is value
        assert peek(5) == 5

    def test_reads_atom(self):
        assert peek(atom(3)) == 3

    def test_forwards_args(self):
        assert peek(lambda x, y: x + y, 1, 2) == 3

    def test_hides_reads_from_capture(self):
        a, b = atom(1), atom(2)
        dependencies, _ = capture(lambda: (peek(lambda: a()), b()))
        assert dependencies == {b}

    def test_tracking_resumes_after_peek(self):
        a, b, c = atom(1), atom(2), atom(3)

        def molecule():
            a()
            peek(b)
            c()

        dependencies, _ = capture(molecule)
        assert dependencies == {a, c}

    def test_nested_peek(self):
        a, b = atom(1), atom(2)

        def molecule():
            peek(lambda: (peek(a), b()))
            a()

        dependencies, _ = capture(molecule)
        assert dependencies == {a}

    def test_restores_after_error(self):
        a, b = atom(1), atom(2)

        def failing():
            a()
            raise KeyError("x")

        def molecule():
            with pytest.raises(KeyError):
                peek(failing)
            b()

        dependencies, _ = capture(molecule)
        assert dependencies == {b}


class TestNotify:
    def test_runs_listeners(self):
        a = atom(1)
        log = []
        connect(a, lambda: log.append("x"))
        notify(a)
        assert log == ["x"]

    def test_snapshot_of_listeners(self):
        """A listener removed mid-notification still runs in this pass."""
        a = atom(1)
        log = []

        def second():
            log.append("second")

        def first():
            log.append("first")
            disconnect(a, second)

        connect(a, first)
        connect(a, second)
        notify(a)
        assert sorted(log) == ["first", "second"]

        log.clear()
        notify(a)
        assert log == ["first"]

    def test_disconnect_missing_edge(self):
        a = atom(1)
        disconnect(a, lambda: None)
        assert listener_count(a) == 0

    def test_edge_dropped_with_ref(self):
        class Owner:
            pass

        a = atom(1)
        owner = Owner()
        connect(a, lambda: None, owner)
        assert listener_count(a) == 1
        del owner
        gc.collect()
        assert listener_count(a) == 0

    def test_edge_without_ref_is_kept(self):
        a = atom(1)
        connect(a, lambda: None)
        gc.collect()
        assert listener_count(a) == 1
