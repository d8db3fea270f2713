"""
Reservation status constants - centralized to avoid circular imports.
"""

# Status transitions beyond "confirmed" are handled outside the conversation engine
RESERVATION_CONFIRMED = "confirmed"
