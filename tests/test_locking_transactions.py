"""Tests for the instance lock and explicit transactions."""

import threading

import pytest

pytestmark = pytest.mark.concurrency

from layerconf.exceptions import EntryNotFoundError, StatementError, TypeMismatchError
from layerconf.store import TransactionType


def try_lock_from_thread(config):
    """Attempt a non-blocking lock from another thread, releasing it on success."""
    result = {}

    def worker():
        acquired = config.try_lock()
        if acquired:
            config.unlock()
        result["acquired"] = acquired

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join(timeout=5)
    return result["acquired"]


class TestLocking:

    def test_try_lock_fails_while_held(self, mem_config):
        mem_config.lock()
        try:
            assert not try_lock_from_thread(mem_config)
        finally:
            mem_config.unlock()
        assert try_lock_from_thread(mem_config)

    def test_lock_is_reentrant(self, mem_config):
        with mem_config.locked():
            mem_config.set_int("/a", 1)
            assert mem_config.try_lock()
            mem_config.unlock()
            assert mem_config.get_int("/a") == 1

    def test_released_after_failure(self, mem_config):
        with pytest.raises(EntryNotFoundError):
            mem_config.get_int("/missing")
        assert try_lock_from_thread(mem_config)

    def test_operations_wait_for_holder(self, mem_config):
        done = threading.Event()

        def writer():
            mem_config.set_int("/from/thread", 1)
            done.set()

        with mem_config.locked():
            thread = threading.Thread(target=writer)
            thread.start()
            assert not done.wait(0.2)
            assert not mem_config.exists("/from/thread")

        assert done.wait(5)
        thread.join(timeout=5)
        assert mem_config.get_int("/from/thread") == 1

    def test_crossed_copies_do_not_deadlock(self, mem_config):
        from layerconf.store import SQLiteConfiguration

        other = SQLiteConfiguration()
        other.load(":memory:", ":memory:")
        try:
            mem_config.set_int("/left", 1)
            other.set_int("/right", 2)

            def copy_many(target, source):
                for _ in range(20):
                    target.copy_from(source)

            threads = [
                threading.Thread(target=copy_many, args=(mem_config, other), daemon=True),
                threading.Thread(target=copy_many, args=(other, mem_config), daemon=True),
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=10)
            assert not any(thread.is_alive() for thread in threads)

            assert mem_config.get_int("/right") == 2
            assert other.get_int("/left") == 1
        finally:
            other.close()

    def test_concurrent_writers(self, mem_config):
        def writer(n):
            for i in range(20):
                mem_config.set_int(f"/writer/{n}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        with mem_config.search("/writer/") as values:
            entries = list(values)
        assert len(entries) == 4
        assert all(v.get_int() == 19 for v in entries)


class TestTransactions:

    def test_commit(self, mem_config):
        mem_config.transaction_begin()
        mem_config.set_int("/a", 1)
        mem_config.set_int("/b", 2)
        mem_config.transaction_commit()
        assert mem_config.get_int("/a") == 1
        assert mem_config.get_int("/b") == 2

    def test_rollback_undoes_set(self, mem_config):
        mem_config.set_int("/a", 1)
        mem_config.transaction_begin(TransactionType.IMMEDIATE)
        mem_config.set_int("/a", 2)
        mem_config.set_int("/b", 3)
        mem_config.transaction_rollback()
        assert mem_config.get_int("/a") == 1
        assert not mem_config.exists("/b")

    def test_transactions_do_not_nest(self, mem_config):
        mem_config.transaction_begin()
        try:
            with pytest.raises(StatementError):
                mem_config.transaction_begin(TransactionType.EXCLUSIVE)
        finally:
            mem_config.transaction_rollback()

    def test_commit_without_begin(self, mem_config):
        with pytest.raises(StatementError):
            mem_config.transaction_commit()

    def test_context_manager_commits(self, mem_config):
        with mem_config.transaction():
            mem_config.set_string("/a", "x")
        assert mem_config.get_string("/a") == "x"

    def test_context_manager_rolls_back(self, mem_config):
        with pytest.raises(RuntimeError):
            with mem_config.transaction():
                mem_config.set_string("/a", "x")
                raise RuntimeError("abort")
        assert not mem_config.exists("/a")

    def test_failed_set_inside_transaction(self, mem_config):
        with mem_config.transaction():
            mem_config.set_int("/a", 1)
            with pytest.raises(TypeMismatchError):
                mem_config.set_uint("/b", -1)
        assert mem_config.get_int("/a") == 1
        assert not mem_config.exists("/b")

    def test_tag_inside_transaction(self, layered):
        with layered.transaction():
            layered.tag("v1")
        assert layered.tags() == {"v1"}
