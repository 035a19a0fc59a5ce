"""Tests for batch, the @action decorator and the transaction context manager."""

import pytest

from atomsync import action, atom, batch, effect, get_pending_count, subscribe, transaction
from atomsync import _anchor


class TestBatch:
    def test_single_flush(self):
        a = atom(0)
        log = []
        subscribe(a, lambda s, p: log.append((s, p)))
        batch(lambda: (a(1), a(2), a(3)))
        assert log == [(3, 0)]

    def test_listener_runs_once_for_many_dependencies(self):
        a, b, c = atom(0), atom(0), atom(0)
        runs = []
        effect(lambda: runs.append((a(), b(), c())))
        assert runs == [(0, 0, 0)]

        batch(lambda: (a(1), b(2), c(3)))
        assert runs == [(0, 0, 0), (1, 2, 3)]

    def test_nested_batches_flush_at_outermost(self):
        a = atom(0)
        log = []
        subscribe(a, lambda s, p: log.append(s))

        def outer():
            a(1)
            batch(lambda: a(2))
            assert log == []
            a(3)

        batch(outer)
        assert log == [3]

    def test_pending_until_flush(self):
        a = atom(0)
        subscribe(a, lambda s, p: None)

        def body():
            a(1)
            assert get_pending_count() == 1

        batch(body)
        assert get_pending_count() == 0

    def test_returns_callback_result(self):
        assert batch(lambda: 42) == 42

    def test_error_still_flushes(self):
        a = atom(0)
        log = []
        subscribe(a, lambda s, p: log.append(s))

        def failing():
            a(1)
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            batch(failing)
        assert _anchor.batching is False
        assert log == [1]

        a(2)
        assert log == [1, 2]

    def test_write_inside_listener_during_flush(self):
        a = atom(0)
        b = atom(0)
        log = []
        subscribe(a, lambda s, p: b(s * 10))
        subscribe(b, lambda s, p: log.append(s))
        batch(lambda: a(1))
        assert log == [10]


class TestAction:
    def test_batches_updates(self):
        a = atom(0)
        b = atom(0)
        log = []
        effect(lambda: log.append((a(), b())))
        assert log == [(0, 0)]

        @action
        def update_both():
            a(1)
            b(2)

        update_both()
        # Should see (1, 2) not intermediate (1, 0)
        assert log == [(0, 0), (1, 2)]

    def test_nested_actions(self):
        o = atom(0)
        log = []
        effect(lambda: log.append(o()))

        @action
        def outer():
            o(1)

            @action
            def inner():
                o(2)

            inner()
            o(3)

        outer()
        # Only fires after outermost action completes
        assert log == [0, 3]

    def test_preserves_return_value_and_args(self):
        @action
        def add(x, y=0):
            return x + y

        assert add(40, y=2) == 42


class TestTransaction:
    def test_batches_updates(self):
        a = atom(0)
        b = atom(0)
        log = []
        effect(lambda: log.append((a(), b())))

        with transaction():
            a(10)
            b(20)

        assert log == [(0, 0), (10, 20)]

    def test_nested_transactions(self):
        o = atom(0)
        log = []
        effect(lambda: log.append(o()))

        with transaction():
            o(1)
            with transaction():
                o(2)
            o(3)

        assert log == [0, 3]

    def test_restores_on_exception(self):
        o = atom(0)
        log = []
        subscribe(o, lambda s, p: log.append(s))

        with pytest.raises(ValueError):
            with transaction():
                o(5)
                raise ValueError("oops")

        assert _anchor.batching is False
        assert log == [5]
