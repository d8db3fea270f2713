"""
Error taxonomy for inbound message handling.

None of these escape the webhook handler: each one maps to a reply to the guest
(see ConversationEngine.handle) and a log record for the operator.
"""


class ReserveRepError(Exception):
    """Base class for conversation engine errors."""


class LookupFailure(ReserveRepError):
    """The hotel directory query itself failed (database error)."""


class BusinessNotFound(ReserveRepError):
    """No hotel is configured for the routing key."""

    def __init__(self, routing_key: str):
        self.routing_key = routing_key
        super().__init__(f"No hotel configured for {routing_key!r}")


class BusinessInactive(ReserveRepError):
    """The hotel exists but is switched off."""

    def __init__(self, hotel_id: int, name: str):
        self.hotel_id = hotel_id
        self.name = name
        super().__init__(f"Hotel {hotel_id} ({name}) is inactive")


class PersistenceFailure(ReserveRepError):
    """Inserting the reservation failed."""


class UnhandledStepError(ReserveRepError):
    """Unexpected exception while running a conversation step."""


class DuplicateReference(PersistenceFailure):
    """The generated reference number is already taken."""

    def __init__(self, reference_no: str):
        self.reference_no = reference_no
        super().__init__(f"Reference {reference_no!r} already exists")
