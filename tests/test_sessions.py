"""
Tests for the in-memory session store and per-key locking.
"""

import asyncio

import pytest

from app.services.sessions import (
    ConversationSession,
    KeyedLock,
    SessionKey,
    SessionStore,
    Step,
)

KEY = SessionKey(1, "whatsapp:+447700900123")
OTHER_KEY = SessionKey(2, "whatsapp:+447700900123")


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_get_creates_fresh_start_session():
    store = SessionStore()

    session = store.get(KEY)

    assert session.step == Step.START
    assert session.checkin is None
    assert KEY in store


def test_get_returns_same_session_for_key():
    store = SessionStore()
    store.put(KEY, ConversationSession(step=Step.GUESTS, checkin="2024-05-01"))

    session = store.get(KEY)

    assert session.step == Step.GUESTS
    assert session.checkin == "2024-05-01"


def test_sessions_are_scoped_per_hotel():
    """The same guest talking to two hotels has two independent sessions."""
    store = SessionStore()
    store.put(KEY, ConversationSession(step=Step.CONFIRM))

    assert store.get(OTHER_KEY).step == Step.START
    assert store.get(KEY).step == Step.CONFIRM


def test_clear_removes_session():
    store = SessionStore()
    store.get(KEY)

    store.clear(KEY)

    assert KEY not in store
    assert len(store) == 0


def test_clear_missing_key_is_noop():
    store = SessionStore()
    store.clear(KEY)
    assert len(store) == 0


def test_copy_is_independent():
    session = ConversationSession(step=Step.CHECKOUT, checkin="2024-05-01")
    working = session.copy()

    working.step = Step.GUESTS
    working.checkout = "2024-05-04"

    assert session.step == Step.CHECKOUT
    assert session.checkout is None


def test_idle_session_expires_after_ttl():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=60, clock=clock)
    store.put(KEY, ConversationSession(step=Step.CONFIRM))

    clock.now += 61

    assert KEY not in store
    assert store.get(KEY).step == Step.START


def test_put_refreshes_idle_timer():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=60, clock=clock)
    store.put(KEY, ConversationSession(step=Step.CHECKIN))

    clock.now += 50
    store.put(KEY, ConversationSession(step=Step.CHECKOUT))
    clock.now += 50

    assert store.get(KEY).step == Step.CHECKOUT


def test_sweep_evicts_only_expired_sessions():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=60, clock=clock)
    store.put(KEY, ConversationSession(step=Step.CHECKIN))
    clock.now += 45
    store.put(OTHER_KEY, ConversationSession(step=Step.CHECKIN))
    clock.now += 30

    assert store.sweep() == 1
    assert KEY not in store
    assert OTHER_KEY in store


def test_zero_ttl_never_expires():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=0, clock=clock)
    store.put(KEY, ConversationSession(step=Step.GUESTS))

    clock.now += 10**9

    assert store.sweep() == 0
    assert store.get(KEY).step == Step.GUESTS


@pytest.mark.asyncio
async def test_keyed_lock_serializes_same_key():
    locks = KeyedLock()
    events = []

    async def worker(name: str):
        async with locks.hold(KEY):
            events.append(f"{name}:enter")
            await asyncio.sleep(0.01)
            events.append(f"{name}:exit")

    await asyncio.gather(worker("a"), worker("b"))

    assert events == ["a:enter", "a:exit", "b:enter", "b:exit"]


@pytest.mark.asyncio
async def test_keyed_lock_does_not_block_other_keys():
    locks = KeyedLock()
    events = []

    async def worker(key: SessionKey, name: str):
        async with locks.hold(key):
            events.append(f"{name}:enter")
            await asyncio.sleep(0.01)
            events.append(f"{name}:exit")

    await asyncio.gather(worker(KEY, "a"), worker(OTHER_KEY, "b"))

    assert events[:2] == ["a:enter", "b:enter"]


@pytest.mark.asyncio
async def test_keyed_lock_drops_idle_locks():
    locks = KeyedLock()

    async with locks.hold(KEY):
        assert len(locks) == 1

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_keyed_lock_released_on_exception():
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        async with locks.hold(KEY):
            raise RuntimeError("boom")

    assert len(locks) == 0
    async with locks.hold(KEY):
        pass
