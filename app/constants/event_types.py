"""
Event type constants for structured log records.

Use these instead of string literals so log searches stay consistent.
Passed as ``extra={"event_type": ...}`` on the relevant log calls.
"""

# ---- Webhook / transport ----
EVENT_WEBHOOK_INBOUND = "webhook.inbound_received"
EVENT_WEBHOOK_SIGNATURE_FAILURE = "webhook.signature_verification_failure"
EVENT_WEBHOOK_BAD_REQUEST = "webhook.bad_request"

# ---- Business directory ----
EVENT_HOTEL_LOOKUP_FAILURE = "hotel.lookup_failure"
EVENT_HOTEL_NOT_CONFIGURED = "hotel.not_configured"
EVENT_HOTEL_INACTIVE = "hotel.inactive"

# ---- Conversation ----
EVENT_SESSION_STEP = "session.step"
EVENT_SESSION_STEP_FAILURE = "session.step_failure"
EVENT_SESSION_INVALID_DATES = "session.invalid_dates"
EVENT_SESSION_UNKNOWN_STEP = "session.unknown_step"
EVENT_SESSION_EVICTED = "session.evicted"

# ---- Reservations ----
EVENT_RESERVATION_CONFIRMED = "reservation.confirmed"
EVENT_RESERVATION_PERSIST_FAILURE = "reservation.persist_failure"

# ---- Admin ----
EVENT_ADMIN_QUERY_FAILURE = "admin.query_failure"
