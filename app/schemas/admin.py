"""
Admin API response schemas.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class HotelResponse(BaseModel):
    """Response schema for a hotel."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    whatsapp_to: str
    price_per_night: Decimal
    currency: str
    is_active: bool
    created_at: datetime | None = None


class ReservationResponse(BaseModel):
    """Response schema for a reservation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    reference_no: str
    hotel_id: int
    phone: str
    hotel: str | None = None
    checkin: str | None = None
    checkout: str | None = None
    guests: int | None = None
    nights: int | None = None
    price_per_night: Decimal | None = None
    total_price: Decimal | None = None
    status: str
    created_at: datetime | None = None
