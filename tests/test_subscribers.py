"""Tests for SubscriberRegistry."""

import pytest

from statekeep import SubscriberRegistry


class TestSubscriberRegistry:
    def test_notifies_in_registration_order(self):
        reg = SubscriberRegistry()
        log = []
        reg.add(lambda n, p, i: log.append(("a", n, p, i)))
        reg.add(lambda n, p, i: log.append(("b", n, p, i)))
        reg.notify(2, 1, 0)
        assert log == [("a", 2, 1, 0), ("b", 2, 1, 0)]

    def test_remove_drops_all_duplicates(self):
        reg = SubscriberRegistry()
        log = []

        def f(n, p, i):
            log.append(n)

        reg.add(f)
        reg.add(f)
        assert len(reg) == 2
        reg.remove(f)
        assert len(reg) == 0
        reg.notify(1, 0, 0)
        assert log == []

    def test_remove_is_by_identity(self):
        reg = SubscriberRegistry()
        log = []
        reg.add(lambda n, p, i: log.append(n))
        reg.remove(lambda n, p, i: log.append(n))  # different function object
        reg.notify(1, 0, 0)
        assert log == [1]

    def test_remove_missing_is_noop(self):
        reg = SubscriberRegistry()
        reg.remove(print)  # no error
        assert len(reg) == 0

    def test_unsubscribe_during_fanout(self):
        reg = SubscriberRegistry()
        log = []

        def first(n, p, i):
            log.append("first")
            reg.remove(first)

        reg.add(first)
        reg.add(lambda n, p, i: log.append("second"))
        reg.notify(1, 0, 0)
        assert log == ["first", "second"]
        assert first not in reg

    def test_errors_propagate(self):
        reg = SubscriberRegistry()

        def boom(n, p, i):
            raise ValueError("boom")

        reg.add(boom)
        with pytest.raises(ValueError, match="boom"):
            reg.notify(1, 0, 0)

    def test_contains(self):
        reg = SubscriberRegistry()
        reg.add(print)
        assert print in reg
        assert len not in reg
