"""
Replay a booking conversation against the webhook endpoint.

Posts Twilio-style form webhooks (From/To/Body) one message at a time and
prints each TwiML reply. Signs requests when TWILIO_AUTH_TOKEN is set.

Usage:
    python scripts/webhook_replay.py --to "whatsapp:+14155238886"
    python scripts/webhook_replay.py --to "whatsapp:+14155238886" --message hi --message 2024-05-01
"""

import argparse
import sys
from pathlib import Path

# Add app directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
from twilio.request_validator import RequestValidator

from app.core.config import settings

DEFAULT_CONVERSATION = ["hi", "2024-05-01", "2024-05-04", "2", "yes"]


def calculate_signature(url: str, params: dict[str, str]) -> str | None:
    """Calculate X-Twilio-Signature for testing."""
    if not settings.twilio_auth_token:
        return None
    return RequestValidator(settings.twilio_auth_token).compute_signature(url, params)


def send_message(client: httpx.Client, webhook_url: str, wa_from: str, wa_to: str, body: str) -> bool:
    """Send one inbound message and print the reply."""
    params = {"From": wa_from, "To": wa_to, "Body": body}
    headers = {}
    signature = calculate_signature(webhook_url, params)
    if signature:
        headers["X-Twilio-Signature"] = signature

    print(f"> {body}")
    response = client.post(webhook_url, data=params, headers=headers)
    if response.status_code != 200:
        print(f"  Webhook returned {response.status_code}: {response.text}")
        return False
    print(f"< {response.text}\n")
    return True


def main():
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(description="Replay a WhatsApp booking conversation")
    parser.add_argument("--to", dest="wa_to", required=True, help="Hotel WhatsApp address (Twilio To)")
    parser.add_argument(
        "--from",
        dest="wa_from",
        default="whatsapp:+15005550006",
        help="Guest WhatsApp address (Twilio From)",
    )
    parser.add_argument(
        "--message",
        dest="messages",
        action="append",
        help="Message to send (repeatable; defaults to a full booking)",
    )
    parser.add_argument("--base-url", default="http://localhost:8000", help="Server base URL")
    args = parser.parse_args()

    webhook_url = f"{args.base_url.rstrip('/')}/webhook"
    with httpx.Client(timeout=10.0) as client:
        for body in args.messages or DEFAULT_CONVERSATION:
            if not send_message(client, webhook_url, args.wa_from, args.wa_to, body):
                sys.exit(1)


if __name__ == "__main__":
    main()
