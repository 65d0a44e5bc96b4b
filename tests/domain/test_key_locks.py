"""Tests for the per-key lock registry."""

import threading

import pytest

from freshcart.utils.locks import active_lock_keys, key_lock


class TestKeyLockRegistry:
    def test_entry_exists_only_while_held(self):
        assert active_lock_keys() == []
        with key_lock("order:1"):
            assert active_lock_keys() == ["order:1"]
        assert active_lock_keys() == []

    def test_entry_dropped_when_body_raises(self):
        with pytest.raises(RuntimeError):
            with key_lock("order:1"):
                raise RuntimeError("boom")
        assert active_lock_keys() == []

    def test_many_keys_leave_nothing_behind(self):
        for number in range(50):
            with key_lock(f"order:{number}"):
                pass
        assert active_lock_keys() == []

    def test_waiter_shares_the_holders_lock(self):
        entered = threading.Event()
        release = threading.Event()
        order = []

        def _hold():
            with key_lock("timeslot:a"):
                entered.set()
                release.wait(timeout=5)
                order.append("holder")

        def _wait():
            with key_lock("timeslot:a"):
                order.append("waiter")

        holder = threading.Thread(target=_hold)
        holder.start()
        assert entered.wait(timeout=5)
        waiter = threading.Thread(target=_wait)
        waiter.start()

        assert active_lock_keys() == ["timeslot:a"]
        release.set()
        holder.join(timeout=5)
        waiter.join(timeout=5)

        assert order == ["holder", "waiter"]
        assert active_lock_keys() == []
