"""
Admin reporting endpoints - read-only views over hotels and reservations.
"""

import csv
import io
import logging

from fastapi import APIRouter, Depends, Response, Security
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.auth import get_admin_auth
from app.constants.event_types import EVENT_ADMIN_QUERY_FAILURE
from app.db.deps import get_db
from app.db.models import Reservation
from app.schemas.admin import HotelResponse, ReservationResponse
from app.services.hotels import list_hotels
from app.services.reservations import list_reservations

logger = logging.getLogger(__name__)

router = APIRouter()

CSV_HEADER = [
    "Reference",
    "HotelId",
    "Phone",
    "Checkin",
    "Checkout",
    "Guests",
    "Nights",
    "Price Per Night",
    "Total",
    "Status",
    "Created At",
]


def _query_error_response(e: SQLAlchemyError, what: str) -> JSONResponse:
    logger.error(f"Admin {what} query failed: {e}", extra={"event_type": EVENT_ADMIN_QUERY_FAILURE})
    return JSONResponse(status_code=500, content={"error": f"Failed to load {what}"})


def _csv_value(value) -> str:
    """None renders as an empty cell."""
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _reservation_csv_row(r: Reservation) -> list[str]:
    return [
        _csv_value(v)
        for v in (
            r.reference_no,
            r.hotel_id,
            r.phone,
            r.checkin,
            r.checkout,
            r.guests,
            r.nights,
            r.price_per_night,
            r.total_price,
            r.status,
            r.created_at,
        )
    ]


@router.get("/reservations", response_model=list[ReservationResponse])
def get_reservations(
    hotel_id: int | None = None,
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """
    Most recent reservations (up to 100), newest first.

    Query params: hotel_id (optional filter).
    """
    try:
        return list_reservations(db, hotel_id=hotel_id)
    except SQLAlchemyError as e:
        return _query_error_response(e, "reservations")


@router.get("/hotels", response_model=list[HotelResponse])
def get_hotels(
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """All hotels, newest first."""
    try:
        return list_hotels(db)
    except SQLAlchemyError as e:
        return _query_error_response(e, "hotels")


@router.get("/export")
def export_reservations_csv(
    hotel_id: int | None = None,
    db: Session = Depends(get_db),
    _auth: bool = Security(get_admin_auth),
):
    """
    Export reservations as CSV (attachment reservations.csv).

    Query params: hotel_id (optional filter).
    """
    try:
        reservations = list_reservations(db, hotel_id=hotel_id, limit=None)
    except SQLAlchemyError as e:
        return _query_error_response(e, "reservations")

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for r in reservations:
        writer.writerow(_reservation_csv_row(r))

    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="reservations.csv"'},
    )
