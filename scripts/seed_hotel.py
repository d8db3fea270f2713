"""
Create or update a hotel so its WhatsApp number routes to the bot.

Usage:
    python scripts/seed_hotel.py --name "Sea View" --to "whatsapp:+14155238886" --price 50 --currency '$'
    python scripts/seed_hotel.py --to "whatsapp:+14155238886" --inactive
"""

import argparse
import sys
from decimal import Decimal
from pathlib import Path

# Add app directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from app.db.helpers import commit_and_refresh
from app.db.models import Hotel
from app.db.session import SessionLocal


def upsert_hotel(
    whatsapp_to: str,
    name: str | None,
    price: Decimal | None,
    currency: str | None,
    is_active: bool,
) -> Hotel:
    db = SessionLocal()
    try:
        hotel = db.execute(select(Hotel).where(Hotel.whatsapp_to == whatsapp_to)).scalars().first()
        if hotel is None:
            if name is None or price is None:
                raise SystemExit("--name and --price are required for a new hotel")
            hotel = Hotel(whatsapp_to=whatsapp_to, name=name, price_per_night=price)
            db.add(hotel)
        if name is not None:
            hotel.name = name
        if price is not None:
            hotel.price_per_night = price
        if currency is not None:
            hotel.currency = currency
        hotel.is_active = is_active
        commit_and_refresh(db, hotel)
        return hotel
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create or update a hotel")
    parser.add_argument("--to", dest="whatsapp_to", required=True, help="Twilio To address")
    parser.add_argument("--name")
    parser.add_argument("--price", type=Decimal, help="Price per night")
    parser.add_argument("--currency")
    parser.add_argument("--inactive", action="store_true", help="Mark the hotel unavailable")
    args = parser.parse_args()

    hotel = upsert_hotel(
        args.whatsapp_to, args.name, args.price, args.currency, is_active=not args.inactive
    )
    state = "active" if hotel.is_active else "inactive"
    print(f"Hotel {hotel.id}: {hotel.name} ({hotel.whatsapp_to}) {hotel.currency}{hotel.price_per_night}/night, {state}")


if __name__ == "__main__":
    main()
