"""
Twilio webhook signature verification.

Twilio signs each webhook with the account auth token: base64(HMAC-SHA1) over
the full request URL followed by the sorted POST parameters, sent in the
X-Twilio-Signature header. Validation is delegated to twilio's RequestValidator.
"""

import logging
from collections.abc import Mapping
from urllib.parse import parse_qs, urlsplit

from twilio.request_validator import RequestValidator

from app.core.config import settings

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Twilio-Signature"


def build_signed_url(request_url: str, path: str, query: str) -> str:
    """
    URL Twilio used when signing.

    Behind a proxy the URL the app sees differs from the public one, so
    PUBLIC_BASE_URL replaces scheme and host when configured.
    """
    if not settings.public_base_url:
        return request_url
    url = settings.public_base_url.rstrip("/") + path
    return f"{url}?{query}" if query else url


def verify_twilio_signature(
    url: str,
    params: Mapping[str, str] | str,
    signature_header: str | None,
) -> bool:
    """
    Verify a Twilio webhook signature.

    Args:
        url: Full URL Twilio posted to (see build_signed_url)
        params: Form parameters, or the raw body for JSON webhooks
        signature_header: X-Twilio-Signature header value

    Returns:
        True if the signature is valid (or verification is disabled), False otherwise
    """
    # If auth token is not configured, skip verification (dev mode)
    if not settings.twilio_auth_token:
        logger.warning(
            "Twilio auth token not configured - skipping signature verification. "
            "Set TWILIO_AUTH_TOKEN in production."
        )
        return True

    if not signature_header:
        logger.warning(f"Missing {SIGNATURE_HEADER} header in Twilio webhook")
        return False

    # A raw body is only signed through the bodySHA256 query parameter;
    # without it Twilio signs the URL alone.
    if isinstance(params, str) and "bodySHA256" not in parse_qs(urlsplit(url).query):
        params = {}

    validator = RequestValidator(settings.twilio_auth_token)
    is_valid = validator.validate(url, params, signature_header)
    if not is_valid:
        logger.warning("Twilio signature mismatch")
    return is_valid
