"""
TwiML rendering for Twilio webhook replies.

Twilio reads the reply from the webhook response body, so every outbound
message is a single <Message> inside <Response>.
"""

TWIML_MEDIA_TYPE = "text/xml"

_XML_ENTITIES = (
    ("&", "&amp;"),  # must run first
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def escape_xml(value: object) -> str:
    """Entity-escape & < > " ' for use in XML text."""
    text = str(value)
    for char, entity in _XML_ENTITIES:
        text = text.replace(char, entity)
    return text


def render_twiml(message: str) -> str:
    """Wrap a reply in a TwiML messaging response."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<Response><Message>{escape_xml(message)}</Message></Response>"
    )
