"""Tests for the in-process session store."""

import pytest

from sarufi.domain.models.session import SessionContext, SessionStatus
from sarufi.services.session_store import SessionStore


def _context(user_id="u1", strategy_name="shoe_sales", status=SessionStatus.ACTIVE):
    return SessionContext(user_id=user_id, strategy_name=strategy_name, status=status)


@pytest.fixture
def store():
    return SessionStore()


def test_add_and_get(store):
    context = _context()
    store.add(context)

    assert store.get(context.session_id) is context
    assert context.session_id in store
    assert len(store) == 1


def test_get_unknown_returns_none(store):
    assert store.get("missing") is None


def test_find_active_for_user(store):
    done = _context(status=SessionStatus.COMPLETED)
    live = _context()
    store.add(done)
    store.add(live)
    store.add(_context(user_id="u2"))

    assert store.find_active_for_user("u1") is live
    assert store.find_active_for_user("u3") is None


def test_list_for_user_in_creation_order(store):
    first, second = _context(), _context(status=SessionStatus.COMPLETED)
    store.add(first)
    store.add(second)

    assert store.list_for_user("u1") == [first, second]


def test_list_active_and_by_strategy(store):
    store.add(_context())
    store.add(_context(status=SessionStatus.ESCALATED))
    store.add(_context(strategy_name="boot_sales"))

    assert len(store.list_active()) == 2
    assert len(store.list_for_strategy("shoe_sales")) == 2
    assert store.list_for_strategy("unknown") == []


def test_locks_are_stable_per_key(store):
    assert store.session_lock("s1") is store.session_lock("s1")
    assert store.session_lock("s1") is not store.session_lock("s2")
    assert store.user_lock("u1") is store.user_lock("u1")


def test_clear(store):
    store.add(_context())

    store.clear()

    assert len(store) == 0
    assert store.list_for_user("u1") == []
