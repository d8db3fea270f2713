"""
Tests for reservation persistence, references and hotel lookup.
"""

import re
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.services.errors import DuplicateReference, LookupFailure, PersistenceFailure
from app.services.hotels import get_hotel_by_routing_key
from app.services.reservations import (
    create_reservation,
    generate_reference,
    list_reservations,
)
from app.services.sessions import ConversationSession, Step
from tests.helpers.conversation import GUEST_NUMBER, HOTEL_NUMBER

REFERENCE_PATTERN = re.compile(r"^RR-\d{13}-[0-9A-F]{6}$")


@pytest.fixture
def quoted_session():
    return ConversationSession(
        step=Step.CONFIRM,
        checkin="2024-05-01",
        checkout="2024-05-04",
        guests=2,
        nights=3,
        price_per_night=Decimal("50.00"),
        total=Decimal("150.00"),
    )


def test_generate_reference_format():
    assert REFERENCE_PATTERN.match(generate_reference())


def test_generate_reference_custom_prefix():
    assert generate_reference("SEA").startswith("SEA-")


def test_generate_reference_unique_in_same_millisecond():
    references = {generate_reference() for _ in range(200)}
    assert len(references) == 200


def test_create_reservation_copies_quote(db, hotel, quoted_session):
    reservation = create_reservation(db, hotel, GUEST_NUMBER, quoted_session, "RR-1-ABCDEF")

    assert reservation.id is not None
    assert reservation.hotel_id == hotel.id
    assert reservation.hotel == "Sea View"
    assert reservation.nights == 3
    assert reservation.total_price == Decimal("150.00")
    assert reservation.status == "confirmed"
    assert reservation.created_at is not None


def test_quote_not_recomputed_on_insert(db, hotel, quoted_session):
    """A rate change after the quote doesn't alter what was agreed."""
    hotel.price_per_night = Decimal("80.00")
    db.commit()

    reservation = create_reservation(db, hotel, GUEST_NUMBER, quoted_session, "RR-1-ABCDEF")

    assert reservation.price_per_night == Decimal("50.00")
    assert reservation.total_price == Decimal("150.00")


def test_duplicate_reference_raises_duplicate_reference(db, hotel, quoted_session):
    create_reservation(db, hotel, GUEST_NUMBER, quoted_session, "RR-1-ABCDEF")

    with pytest.raises(DuplicateReference) as exc_info:
        create_reservation(db, hotel, GUEST_NUMBER, quoted_session, "RR-1-ABCDEF")

    assert exc_info.value.reference_no == "RR-1-ABCDEF"
    assert isinstance(exc_info.value, PersistenceFailure)

    # Session is usable again after the rollback
    assert len(list_reservations(db)) == 1


def test_reload_failure_after_commit_still_returns_reservation(db, hotel, quoted_session, monkeypatch):
    def broken_refresh(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(db, "refresh", broken_refresh)

    reservation = create_reservation(db, hotel, GUEST_NUMBER, quoted_session, "RR-1-ABCDEF")

    assert reservation.reference_no == "RR-1-ABCDEF"
    assert len(list_reservations(db)) == 1


def test_driver_error_rolls_back_and_propagates(db, hotel, quoted_session, monkeypatch):
    def broken_commit():
        raise OverflowError("Python int too large to convert to SQLite INTEGER")

    monkeypatch.setattr(db, "commit", broken_commit)

    with pytest.raises(OverflowError):
        create_reservation(db, hotel, GUEST_NUMBER, quoted_session, "RR-1-ABCDEF")

    monkeypatch.undo()
    assert list_reservations(db) == []


def test_list_reservations_limit_none_returns_all(db, hotel, quoted_session):
    for i in range(3):
        create_reservation(db, hotel, GUEST_NUMBER, quoted_session, f"RR-{i}-ABCDEF")

    assert len(list_reservations(db, limit=2)) == 2
    assert len(list_reservations(db, limit=None)) == 3


def test_hotel_lookup_by_routing_key(db, hotel):
    assert get_hotel_by_routing_key(db, HOTEL_NUMBER).id == hotel.id
    assert get_hotel_by_routing_key(db, "whatsapp:+10000000000") is None


def test_hotel_lookup_database_error(db, monkeypatch):
    def broken_execute(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "execute", broken_execute)

    with pytest.raises(LookupFailure):
        get_hotel_by_routing_key(db, HOTEL_NUMBER)
