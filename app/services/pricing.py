"""
Pricing service - nights stayed and quoted totals.

Dates are entered as YYYY-MM-DD and interpreted at midnight UTC, so two dates
always differ by a whole number of days. The day count is still rounded up
from the raw millisecond difference so a partial day counts as a full night.

The quote is computed once, at the guest-count step, and carried unchanged into
the reservation row. Nothing downstream recomputes it.
"""

import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

logger = logging.getLogger(__name__)

STAY_DATE_FORMAT = "%Y-%m-%d"
MS_PER_DAY = 1000 * 60 * 60 * 24


class PricingError(ValueError):
    """Base class for quote failures caused by guest input."""


class InvalidDate(PricingError):
    """A stay date is not a YYYY-MM-DD calendar date."""

    def __init__(self, value: str | None):
        self.value = value
        super().__init__(f"Invalid stay date: {value!r} (expected YYYY-MM-DD)")


class InvalidDateRange(PricingError):
    """Check-out falls before check-in."""

    def __init__(self, checkin: str, checkout: str):
        self.checkin = checkin
        self.checkout = checkout
        super().__init__(f"Check-out {checkout!r} is before check-in {checkin!r}")


@dataclass(frozen=True)
class Quote:
    """Itemized price for a stay."""

    nights: int
    price_per_night: Decimal
    total: Decimal


def parse_stay_date(value: str | None) -> datetime:
    """
    Parse a stay date at midnight UTC.

    Raises:
        InvalidDate: If value is missing or not YYYY-MM-DD
    """
    if value is None:
        raise InvalidDate(value)
    try:
        return datetime.strptime(value.strip(), STAY_DATE_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        raise InvalidDate(value) from None


def calculate_nights(checkin: str | None, checkout: str | None) -> int:
    """
    Number of nights between check-in and check-out.

    Same-day check-out is 0 nights. A check-out before check-in is rejected
    rather than producing a negative count.

    Raises:
        InvalidDate: If either date is malformed
        InvalidDateRange: If checkout is before checkin
    """
    start = parse_stay_date(checkin)
    end = parse_stay_date(checkout)

    diff_ms = (end - start).total_seconds() * 1000
    if diff_ms < 0:
        raise InvalidDateRange(checkin, checkout)
    return math.ceil(diff_ms / MS_PER_DAY)


def quote_stay(checkin: str | None, checkout: str | None, price_per_night: Decimal | int | str) -> Quote:
    """
    Build a quote: nights x nightly rate.

    Args:
        checkin: Check-in date as entered (YYYY-MM-DD)
        checkout: Check-out date as entered (YYYY-MM-DD)
        price_per_night: Nightly rate (converted to Decimal)

    Returns:
        Quote with nights, rate and total
    """
    nights = calculate_nights(checkin, checkout)
    rate = Decimal(str(price_per_night))
    total = rate * nights
    logger.debug(f"Quoted {nights} nights x {rate} = {total}")
    return Quote(nights=nights, price_per_night=rate, total=total)
