"""
Pydantic schemas for API request/response validation.
"""

from app.schemas.admin import HotelResponse, ReservationResponse

__all__ = [
    "HotelResponse",
    "ReservationResponse",
]
