from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.constants.statuses import RESERVATION_CONFIRMED
from app.db.base import Base


class Hotel(Base):
    """Business identity a WhatsApp number routes to."""

    __tablename__ = "hotels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    # Twilio destination address, e.g. "whatsapp:+14155238886"
    whatsapp_to: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    currency: Mapped[str] = mapped_column(String(8), default="$")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    reservations: Mapped[list["Reservation"]] = relationship("Reservation", back_populates="hotel_ref")


class Reservation(Base):
    """Confirmed booking. Insert-only from the conversation engine."""

    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    reference_no: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    hotel_id: Mapped[int] = mapped_column(Integer, ForeignKey("hotels.id"), index=True)
    phone: Mapped[str] = mapped_column(String(64), index=True)
    hotel: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)  # Name at booking time

    # Dates are stored as the guest typed them
    checkin: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    checkout: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    guests: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    nights: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    price_per_night: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    total_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    status: Mapped[str] = mapped_column(String(32), default=RESERVATION_CONFIRMED)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    hotel_ref: Mapped["Hotel"] = relationship("Hotel", back_populates="reservations")
