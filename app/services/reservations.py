"""
Reservation persistence and reporting queries.

The conversation engine only ever inserts; rows are never updated or deleted here.
"""

import logging
import secrets
import time

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.constants.statuses import RESERVATION_CONFIRMED
from app.core.config import settings
from app.db.models import Hotel, Reservation
from app.services.errors import DuplicateReference, PersistenceFailure
from app.services.sessions import ConversationSession

logger = logging.getLogger(__name__)

# Most recent reservations returned by the admin listing
RESERVATION_LIST_LIMIT = 100


def generate_reference(prefix: str | None = None) -> str:
    """
    Build a booking reference: <prefix>-<epoch ms>-<6 hex chars>.

    The millisecond part keeps references roughly ordered by time; the random
    suffix keeps two bookings confirmed in the same millisecond apart.
    """
    prefix = prefix or settings.reference_prefix
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


def _is_reference_unique_violation(exc: IntegrityError) -> bool:
    """
    True if the IntegrityError is the unique index on reservations.reference_no.
    Other integrity errors (e.g. a missing hotel) are real failures.
    """
    orig = exc.orig
    if orig is None:
        return False
    err_msg = str(orig).lower()
    # Postgres: SQLSTATE 23505 = unique_violation
    if getattr(orig, "pgcode", None) == "23505":
        return "reference_no" in err_msg
    # SQLite: "UNIQUE constraint failed: reservations.reference_no"
    return "unique constraint failed" in err_msg and "reference_no" in err_msg


def create_reservation(
    db: Session,
    hotel: Hotel,
    phone: str,
    session: ConversationSession,
    reference_no: str,
) -> Reservation:
    """
    Insert a confirmed reservation from a session at the confirm step.

    Nights and totals are copied from the session as quoted, never recomputed.
    Once the commit succeeds the booking counts as stored: a failed reload of
    server defaults afterwards is logged, not raised.

    Raises:
        DuplicateReference: If reference_no is already taken (transaction rolled back)
        PersistenceFailure: If the insert fails (transaction rolled back)
    """
    reservation = Reservation(
        reference_no=reference_no,
        hotel_id=hotel.id,
        phone=phone,
        hotel=hotel.name,
        checkin=session.checkin,
        checkout=session.checkout,
        guests=session.guests,
        nights=session.nights,
        price_per_night=session.price_per_night,
        total_price=session.total,
        status=RESERVATION_CONFIRMED,
    )
    try:
        db.add(reservation)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if _is_reference_unique_violation(e):
            raise DuplicateReference(reference_no) from e
        raise PersistenceFailure(str(e)) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceFailure(str(e)) from e
    except Exception:
        # Driver-level errors (e.g. OverflowError binding a parameter) bypass
        # SQLAlchemy's wrapping; the session still needs its rollback.
        db.rollback()
        raise

    try:
        db.refresh(reservation)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Reservation {reference_no} stored but reload failed: {e}")
    return reservation


def list_reservations(
    db: Session,
    hotel_id: int | None = None,
    limit: int | None = RESERVATION_LIST_LIMIT,
) -> list[Reservation]:
    """
    Reservations newest first, optionally for one hotel.

    Args:
        db: Database session
        hotel_id: Only this hotel's reservations (None = all)
        limit: Maximum rows (None = no limit, used by CSV export)
    """
    stmt = select(Reservation).order_by(desc(Reservation.created_at), desc(Reservation.id))
    if hotel_id:
        stmt = stmt.where(Reservation.hotel_id == hotel_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars().all())
