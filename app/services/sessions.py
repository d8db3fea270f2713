"""
Conversation session store.

Sessions are keyed by (hotel_id, sender) so one guest can talk to several hotels
at once. State is process-resident only: a restart drops every in-progress
conversation and guests start again from the welcome message.

Eviction: a session idle for longer than ``ttl_seconds`` is treated as absent
and removed on the next sweep. Sweeps run lazily on get/put.

The store does not serialize access to a key. ConversationEngine holds a
KeyedLock around each read-modify-write.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from app.constants.event_types import EVENT_SESSION_EVICTED

logger = logging.getLogger(__name__)


class Step(str, Enum):
    """Position in the booking conversation."""

    START = "start"
    CHECKIN = "checkin"
    CHECKOUT = "checkout"
    GUESTS = "guests"
    CONFIRM = "confirm"


class SessionKey(NamedTuple):
    hotel_id: int
    sender: str

    def __str__(self) -> str:
        return f"{self.hotel_id}:{self.sender}"


@dataclass
class ConversationSession:
    """Per-conversation state. A missing session equals a fresh one at START."""

    step: Step = Step.START
    checkin: str | None = None
    checkout: str | None = None
    guests: int | None = None
    nights: int | None = None
    price_per_night: Decimal | None = None
    total: Decimal | None = None
    updated_at: float = 0.0

    def copy(self) -> "ConversationSession":
        return replace(self)


class SessionStore:
    """In-memory get-or-create session map with idle TTL eviction."""

    def __init__(self, ttl_seconds: int = 0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[SessionKey, ConversationSession] = {}

    def __contains__(self, key: SessionKey) -> bool:
        session = self._sessions.get(key)
        return session is not None and not self._is_expired(session)

    def __len__(self) -> int:
        return len(self._sessions)

    def _is_expired(self, session: ConversationSession) -> bool:
        if self.ttl_seconds <= 0:
            return False
        return self._clock() - session.updated_at > self.ttl_seconds

    def get(self, key: SessionKey) -> ConversationSession:
        """
        Return the session for key, creating a fresh START session if absent.

        Expired sessions are discarded and replaced by a fresh one.
        """
        self.sweep()
        session = self._sessions.get(key)
        if session is None:
            session = ConversationSession(updated_at=self._clock())
            self._sessions[key] = session
        return session

    def put(self, key: SessionKey, session: ConversationSession) -> None:
        session.updated_at = self._clock()
        self._sessions[key] = session
        self.sweep()

    def clear(self, key: SessionKey) -> None:
        self._sessions.pop(key, None)

    def sweep(self) -> int:
        """
        Evict idle sessions.

        Returns:
            Number of sessions evicted
        """
        if self.ttl_seconds <= 0:
            return 0
        expired = [key for key, session in self._sessions.items() if self._is_expired(session)]
        for key in expired:
            del self._sessions[key]
        if expired:
            logger.info(
                f"Evicted {len(expired)} idle sessions",
                extra={"event_type": EVENT_SESSION_EVICTED},
            )
        return len(expired)


class KeyedLock:
    """
    One asyncio.Lock per session key.

    Locks are reference counted and dropped once no task holds or waits on
    them, so the map only grows with the number of keys in flight.
    """

    def __init__(self) -> None:
        self._locks: dict[SessionKey, asyncio.Lock] = {}
        self._waiters: dict[SessionKey, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: SessionKey) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]
