"""Tests for computed values."""

import gc

import pytest

from atomsync import Computed, MisuseError, atom, computed, is_atom, subscribe
from atomsync._tracking import listener_count


class TestComputed:
    def test_initial_value(self):
        a = atom(5)
        doubled = computed(lambda: a() * 2)
        assert doubled() == 10
        assert isinstance(doubled, Computed)
        assert is_atom(doubled)

    def test_eager_rederivation(self):
        calls = []
        a = atom(1)

        def fn():
            calls.append(a())
            return a() * 2

        b = computed(fn)
        a(5)
        assert calls == [1, 5]
        assert b() == 10

    def test_reads_do_not_recompute(self):
        calls = []
        a = atom(5)
        b = computed(lambda: calls.append(1) or a() * 2)
        b()
        b()
        assert len(calls) == 1

    def test_dependency_tracking(self):
        """Computed follows conditional reads."""
        flag = atom(True)
        a = atom(1)
        b = atom(2)

        c = computed(lambda: a() if flag() else b())
        assert c() == 1

        flag(False)
        assert c() == 2
        assert listener_count(a) == 0

        b(20)
        assert c() == 20

    def test_chained_computed(self):
        o = atom(3)
        doubled = computed(lambda: o() * 2)
        quadrupled = computed(lambda: doubled() * 2)
        assert quadrupled() == 12
        o(5)
        assert quadrupled() == 20

    def test_read_only(self):
        c = computed(lambda: 1)
        with pytest.raises(MisuseError):
            c.set(2)
        with pytest.raises(MisuseError):
            c(2)

    def test_equality_gate_suppresses_downstream(self):
        a = atom(1)
        parity = computed(lambda: a() % 2)
        log = []
        subscribe(parity, lambda s, p: log.append(s))
        a(3)
        assert log == []
        a(4)
        assert log == [0]

    def test_custom_equals(self):
        a = atom({"id": 1, "rev": 1})
        latest = computed(lambda: dict(a()), equals=lambda p, n: p["id"] == n["id"])
        first = latest()
        a({"id": 1, "rev": 2})
        assert latest() is first

    def test_error_propagates_to_writer(self):
        a = atom(1)
        quotient = computed(lambda: 10 // a())
        assert quotient() == 10
        with pytest.raises(ZeroDivisionError):
            a(0)


class TestComputedLifetime:
    def test_unreferenced_computed_drops_edges(self):
        source = atom(1)
        calls = []
        doubled = computed(lambda: calls.append(1) or source() * 2)
        assert listener_count(source) == 1

        del doubled
        gc.collect()
        assert listener_count(source) == 0

        source(2)
        assert len(calls) == 1

    def test_subscribed_computed_stays_alive(self):
        source = atom(1)
        log = []
        subscribe(computed(lambda: source() + 1), lambda s, p: log.append(s))
        gc.collect()
        source(2)
        assert log == [3]

    def test_chained_intermediate_kept_by_downstream(self):
        source = atom(1)

        def build():
            inner = computed(lambda: source() + 1)
            return computed(lambda: inner() * 10)

        outer = build()
        gc.collect()
        source(2)
        assert outer() == 30
