# Messaging: guest copy, TwiML replies, Twilio signature checks
# Re-export so "from app.services.messaging import ..." works for callers.

from app.services.messaging.message_composer import render_message
from app.services.messaging.twiml import TWIML_MEDIA_TYPE, escape_xml, render_twiml
from app.services.messaging.twilio_verification import verify_twilio_signature

__all__ = [
    "TWIML_MEDIA_TYPE",
    "escape_xml",
    "render_message",
    "render_twiml",
    "verify_twilio_signature",
]
