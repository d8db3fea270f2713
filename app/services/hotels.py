"""Hotel directory - resolves a WhatsApp routing key to a hotel."""

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import Hotel
from app.services.errors import LookupFailure


def get_hotel_by_routing_key(db: Session, routing_key: str) -> Hotel | None:
    """
    Look up the hotel whose WhatsApp number receives this message.

    Called once per inbound message; results are never cached across turns so
    deactivating a hotel takes effect on the guest's next message.

    Args:
        db: Database session
        routing_key: Twilio "To" address (e.g. "whatsapp:+14155238886")

    Returns:
        Hotel or None if no hotel is configured for the number

    Raises:
        LookupFailure: If the query fails
    """
    try:
        stmt = select(Hotel).where(Hotel.whatsapp_to == routing_key)
        return db.execute(stmt).scalars().first()
    except SQLAlchemyError as e:
        db.rollback()
        raise LookupFailure(str(e)) from e


def list_hotels(db: Session) -> list[Hotel]:
    """All hotels, newest first."""
    stmt = select(Hotel).order_by(desc(Hotel.created_at), desc(Hotel.id))
    return list(db.execute(stmt).scalars().all())
