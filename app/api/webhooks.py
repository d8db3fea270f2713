import json
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.constants.event_types import (
    EVENT_WEBHOOK_BAD_REQUEST,
    EVENT_WEBHOOK_INBOUND,
    EVENT_WEBHOOK_SIGNATURE_FAILURE,
)
from app.db.deps import get_db
from app.middleware.correlation_id import get_correlation_id
from app.services.conversation import InboundMessage, get_engine
from app.services.messaging.twiml import TWIML_MEDIA_TYPE, render_twiml
from app.services.messaging.twilio_verification import (
    SIGNATURE_HEADER,
    build_signed_url,
    verify_twilio_signature,
)
from app.utils.phone import mask_phone

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_response(status_code: int, error: str) -> JSONResponse:
    """Build JSONResponse for webhook errors: {"received": False, "error": ...}."""
    return JSONResponse(status_code=status_code, content={"received": False, "error": error})


def twiml_response(message: str) -> Response:
    return Response(content=render_twiml(message), media_type=TWIML_MEDIA_TYPE)


async def _read_params(request: Request) -> tuple[dict[str, str], dict[str, str] | str]:
    """
    Read webhook parameters from a form or JSON body.

    Returns:
        (params, signed_payload) - signed_payload is what Twilio signed: the form
        dict for form posts, the raw body for JSON posts.

    Raises:
        ValueError: If a JSON body is not a JSON object
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        raw_body = (await request.body()).decode("utf-8")
        payload = json.loads(raw_body)
        if not isinstance(payload, dict):
            raise ValueError("JSON payload must be an object")
        params = {k: str(v) for k, v in payload.items() if v is not None}
        return params, raw_body

    form = await request.form()
    params = {k: v for k, v in form.items() if isinstance(v, str)}
    return params, params


@router.post("/webhook")
async def whatsapp_inbound(request: Request, db: Session = Depends(get_db)):
    """
    Twilio WhatsApp inbound webhook.

    Body fields: From (guest), To (hotel routing key), Body (text).
    Replies with TwiML; every processed message gets HTTP 200, including error replies.
    """
    correlation_id = get_correlation_id(request)

    try:
        params, signed_payload = await _read_params(request)
    except ValueError as e:
        logger.warning(
            f"Invalid webhook payload: {e}",
            extra={"event_type": EVENT_WEBHOOK_BAD_REQUEST},
        )
        return _error_response(400, "Invalid payload")

    signed_url = build_signed_url(str(request.url), request.url.path, request.url.query)
    if not verify_twilio_signature(signed_url, signed_payload, request.headers.get(SIGNATURE_HEADER)):
        logger.warning(
            "Twilio webhook signature verification failed - rejecting request",
            extra={"event_type": EVENT_WEBHOOK_SIGNATURE_FAILURE},
        )
        return _error_response(403, "Invalid webhook signature")

    sender = (params.get("From") or "").strip()
    routing_key = (params.get("To") or "").strip()
    body = (params.get("Body") or "").strip()

    if not sender or not routing_key:
        logger.warning(
            "Webhook missing From/To",
            extra={"event_type": EVENT_WEBHOOK_BAD_REQUEST},
        )
        return _error_response(400, "Missing From or To")

    logger.info(
        f"webhook.inbound_received from={mask_phone(sender)} to={routing_key} correlation_id={correlation_id}",
        extra={
            "correlation_id": correlation_id,
            "event_type": EVENT_WEBHOOK_INBOUND,
        },
    )

    reply = await get_engine().handle(
        db, InboundMessage(sender=sender, routing_key=routing_key, body=body)
    )
    return twiml_response(reply.text)
