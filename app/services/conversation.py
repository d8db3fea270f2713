"""
Conversation flow service - booking state machine and per-message engine.

Flow (one inbound message per step):
    START -> CHECKIN -> CHECKOUT -> GUESTS -> CONFIRM -> (booked, session removed)

advance() is the pure transition: session + hotel + text in, next session and
reply out. ConversationEngine wraps it with the hotel gate, the per-key lock,
the session store and reservation persistence.

Input policies:
- Check-in / check-out are stored verbatim; they are validated when the quote
  is built at the guests step. A bad date or reversed range sends the guest
  back to CHECKIN with an explanation.
- A guest count that is not a whole number in 1..MAX_GUESTS is stored as None
  and the flow continues.
- A failed reservation insert keeps the session at CONFIRM so "yes" can be
  retried. A reference collision is retried once with a fresh reference.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.orm import Session

from app.constants.event_types import (
    EVENT_HOTEL_INACTIVE,
    EVENT_HOTEL_LOOKUP_FAILURE,
    EVENT_HOTEL_NOT_CONFIGURED,
    EVENT_RESERVATION_CONFIRMED,
    EVENT_RESERVATION_PERSIST_FAILURE,
    EVENT_SESSION_INVALID_DATES,
    EVENT_SESSION_STEP,
    EVENT_SESSION_STEP_FAILURE,
    EVENT_SESSION_UNKNOWN_STEP,
)
from app.core.config import settings
from app.db.models import Hotel, Reservation
from app.services.errors import (
    BusinessInactive,
    BusinessNotFound,
    DuplicateReference,
    LookupFailure,
    PersistenceFailure,
    UnhandledStepError,
)
from app.services.hotels import get_hotel_by_routing_key
from app.services.messaging.message_composer import render_message
from app.services.pricing import InvalidDate, InvalidDateRange, PricingError, quote_stay
from app.services.reservations import create_reservation, generate_reference
from app.services.sessions import (
    ConversationSession,
    KeyedLock,
    SessionKey,
    SessionStore,
    Step,
)
from app.utils.phone import mask_phone

logger = logging.getLogger(__name__)

AFFIRMATIVE_TOKEN = "yes"

# Reply outcomes (for logs and callers; the guest only sees the text)
OUTCOME_ADVANCED = "advanced"
OUTCOME_QUOTED = "quoted"
OUTCOME_INVALID_DATES = "invalid_dates"
OUTCOME_BOOKED = "booked"
OUTCOME_DECLINED = "declined"
OUTCOME_RESET = "reset"
OUTCOME_PERSIST_FAILED = "persist_failed"
OUTCOME_STEP_FAILED = "step_failed"
OUTCOME_LOOKUP_FAILED = "lookup_failed"
OUTCOME_NOT_CONFIGURED = "not_configured"
OUTCOME_UNAVAILABLE = "unavailable"


class Action(str, Enum):
    """What the engine does with a StepResult."""

    SAVE = "save"  # store result.session
    RESET = "reset"  # store a fresh START session
    COMMIT = "commit"  # persist a reservation, then clear the session


@dataclass
class StepResult:
    reply: str
    session: ConversationSession
    action: Action
    outcome: str


@dataclass(frozen=True)
class InboundMessage:
    """Transport-neutral inbound text message."""

    sender: str
    routing_key: str
    body: str


@dataclass(frozen=True)
class Reply:
    text: str
    outcome: str
    reference_no: str | None = None


def is_affirmative(text: str) -> bool:
    """True if the reply contains "yes" anywhere, any case."""
    return AFFIRMATIVE_TOKEN in text.lower()


def parse_guest_count(text: str, maximum: int | None = None) -> int | None:
    """
    Parse a guest count.

    None when the text is not a whole number or falls outside 1..maximum
    (default settings.max_guests).
    """
    maximum = maximum if maximum is not None else settings.max_guests
    try:
        count = int(text.strip())
    except ValueError:
        return None
    if not 1 <= count <= maximum:
        return None
    return count


def _reprompt_dates(error: PricingError, reply: str) -> StepResult:
    logger.info(
        f"Rejected stay dates: {error}",
        extra={"event_type": EVENT_SESSION_INVALID_DATES},
    )
    return StepResult(reply, ConversationSession(step=Step.CHECKIN), Action.SAVE, OUTCOME_INVALID_DATES)


def _quote_guests(session: ConversationSession, hotel: Hotel, text: str, seed: str) -> StepResult:
    session.guests = parse_guest_count(text)
    try:
        quote = quote_stay(session.checkin, session.checkout, hotel.price_per_night)
    except InvalidDateRange as e:
        reply = render_message("invalid_date_range", seed=seed, checkin=e.checkin, checkout=e.checkout)
        return _reprompt_dates(e, reply)
    except InvalidDate as e:
        return _reprompt_dates(e, render_message("invalid_date", seed=seed, value=e.value))

    session.nights = quote.nights
    session.price_per_night = quote.price_per_night
    session.total = quote.total
    session.step = Step.CONFIRM
    reply = render_message(
        "quote",
        seed=seed,
        hotel_name=hotel.name,
        checkin=session.checkin,
        checkout=session.checkout,
        nights=quote.nights,
        currency=hotel.currency,
        price_per_night=quote.price_per_night,
        total=quote.total,
    )
    return StepResult(reply, session, Action.SAVE, OUTCOME_QUOTED)


def advance(session: ConversationSession, hotel: Hotel, text: str, seed: str = "") -> StepResult:
    """
    Run one conversation step.

    Pure: mutates only the session passed in, performs no I/O. Callers pass a
    copy so a failure leaves the stored session untouched.

    Args:
        session: Working copy of the current session
        hotel: Hotel the conversation belongs to
        text: Inbound message text (already stripped)
        seed: Stable per-conversation seed for copy variants

    Returns:
        StepResult with reply text, next session and the action to apply.
        For Action.COMMIT the reply is empty; the engine renders it once the
        reservation is stored.
    """
    step = session.step
    if step == Step.START:
        session.step = Step.CHECKIN
        reply = render_message("welcome", seed=seed, hotel_name=hotel.name)
        return StepResult(reply, session, Action.SAVE, OUTCOME_ADVANCED)

    if step == Step.CHECKIN:
        session.checkin = text
        session.step = Step.CHECKOUT
        return StepResult(render_message("ask_checkout", seed=seed), session, Action.SAVE, OUTCOME_ADVANCED)

    if step == Step.CHECKOUT:
        session.checkout = text
        session.step = Step.GUESTS
        return StepResult(render_message("ask_guests", seed=seed), session, Action.SAVE, OUTCOME_ADVANCED)

    if step == Step.GUESTS:
        return _quote_guests(session, hotel, text, seed)

    if step == Step.CONFIRM:
        if is_affirmative(text):
            return StepResult("", session, Action.COMMIT, OUTCOME_BOOKED)
        reply = render_message("start_over", seed=seed)
        return StepResult(reply, ConversationSession(), Action.RESET, OUTCOME_DECLINED)

    logger.warning(
        f"Unknown session step {step!r}, resetting",
        extra={"event_type": EVENT_SESSION_UNKNOWN_STEP},
    )
    return StepResult(render_message("generic_prompt", seed=seed), ConversationSession(), Action.RESET, OUTCOME_RESET)


class ConversationEngine:
    """
    Handles one inbound message end to end.

    Guarantees at most one in-flight transition per (hotel, sender): the whole
    read-step-write sequence runs under that key's lock.
    """

    def __init__(self, store: SessionStore, locks: KeyedLock | None = None):
        self.store = store
        self.locks = locks or KeyedLock()

    async def handle(self, db: Session, message: InboundMessage) -> Reply:
        """
        Gate on the hotel, then advance the sender's conversation.

        Never raises for per-message failures; each maps to a reply.
        """
        try:
            hotel = self._resolve_hotel(db, message.routing_key)
        except LookupFailure as e:
            logger.error(
                f"Hotel lookup failed for {message.routing_key}: {e}",
                extra={"event_type": EVENT_HOTEL_LOOKUP_FAILURE},
            )
            return Reply(render_message("lookup_error"), OUTCOME_LOOKUP_FAILED)
        except BusinessNotFound as e:
            logger.info(str(e), extra={"event_type": EVENT_HOTEL_NOT_CONFIGURED})
            return Reply(render_message("not_configured"), OUTCOME_NOT_CONFIGURED)
        except BusinessInactive as e:
            logger.info(str(e), extra={"event_type": EVENT_HOTEL_INACTIVE})
            return Reply(render_message("unavailable", hotel_name=e.name), OUTCOME_UNAVAILABLE)
        except Exception as e:
            logger.error(
                f"Hotel lookup raised for {message.routing_key}: {type(e).__name__}: {e}",
                exc_info=True,
                extra={"event_type": EVENT_HOTEL_LOOKUP_FAILURE},
            )
            return Reply(render_message("lookup_error"), OUTCOME_LOOKUP_FAILED)

        key = SessionKey(hotel.id, message.sender)
        async with self.locks.hold(key):
            try:
                return await self._step(db, hotel, key, message.body)
            except Exception as e:
                cause = e.__cause__ if isinstance(e, UnhandledStepError) and e.__cause__ else e
                logger.error(
                    f"Step failed for session {hotel.id}:{mask_phone(message.sender)}: {e}",
                    exc_info=cause,
                    extra={"event_type": EVENT_SESSION_STEP_FAILURE},
                )
                return Reply(render_message("system_error"), OUTCOME_STEP_FAILED)

    def _resolve_hotel(self, db: Session, routing_key: str) -> Hotel:
        hotel = get_hotel_by_routing_key(db, routing_key)
        if hotel is None:
            raise BusinessNotFound(routing_key)
        if not hotel.is_active:
            raise BusinessInactive(hotel.id, hotel.name)
        return hotel

    async def _step(self, db: Session, hotel: Hotel, key: SessionKey, text: str) -> Reply:
        seed = str(key)
        current = self.store.get(key)
        try:
            result = advance(current.copy(), hotel, text, seed=seed)
        except Exception as e:
            raise UnhandledStepError(f"{type(e).__name__}: {e}") from e

        logger.info(
            f"Session {hotel.id}:{mask_phone(key.sender)} {current.step} -> "
            f"{result.session.step} ({result.outcome})",
            extra={"event_type": EVENT_SESSION_STEP},
        )

        if result.action is Action.COMMIT:
            return await self._commit(db, hotel, key, result.session, seed)
        if result.action is Action.RESET:
            self.store.put(key, ConversationSession())
        else:
            self.store.put(key, result.session)
        return Reply(result.reply, result.outcome)

    async def _commit(
        self, db: Session, hotel: Hotel, key: SessionKey, session: ConversationSession, seed: str
    ) -> Reply:
        # Session stays at CONFIRM on any failure so the guest can retry with "yes"
        reference_no = generate_reference()
        try:
            try:
                await self._persist(db, hotel, key, session, reference_no)
            except DuplicateReference:
                logger.warning(f"Reference {reference_no} already taken, regenerating")
                reference_no = generate_reference()
                await self._persist(db, hotel, key, session, reference_no)
        except PersistenceFailure as e:
            logger.error(
                f"Reservation insert failed for hotel {hotel.id} ref={reference_no}: {e}",
                extra={"event_type": EVENT_RESERVATION_PERSIST_FAILURE},
            )
            return Reply(render_message("booking_failed", seed=seed), OUTCOME_PERSIST_FAILED)
        except Exception as e:
            logger.error(
                f"Reservation insert raised for hotel {hotel.id} ref={reference_no}: {type(e).__name__}: {e}",
                exc_info=True,
                extra={"event_type": EVENT_RESERVATION_PERSIST_FAILURE},
            )
            return Reply(render_message("system_error", seed=seed), OUTCOME_PERSIST_FAILED)

        self.store.clear(key)
        logger.info(
            f"Reservation {reference_no} confirmed for hotel {hotel.id} "
            f"({session.nights} nights, total {session.total})",
            extra={"event_type": EVENT_RESERVATION_CONFIRMED},
        )
        reply = render_message(
            "booking_confirmed",
            seed=seed,
            hotel_name=hotel.name,
            reference_no=reference_no,
        )
        return Reply(reply, OUTCOME_BOOKED, reference_no=reference_no)

    async def _persist(
        self,
        db: Session,
        hotel: Hotel,
        key: SessionKey,
        session: ConversationSession,
        reference_no: str,
    ) -> Reservation:
        return create_reservation(db, hotel, key.sender, session, reference_no)


# Process-wide engine (sessions live as long as the process)
_engine: ConversationEngine | None = None


def get_engine() -> ConversationEngine:
    global _engine
    if _engine is None:
        _engine = ConversationEngine(SessionStore(ttl_seconds=settings.session_ttl_seconds))
    return _engine


def reset_engine() -> None:
    """Drop the global engine and all sessions. Use in tests."""
    global _engine
    _engine = None
