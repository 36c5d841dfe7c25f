"""
Clerk billing webhook receiver.

Clerk delivers billing events through Svix. We verify the signature and log
the event; nothing is persisted yet.

Webhook events handled:
- subscription.created / subscription.updated / subscription.deleted
- payment.succeeded / payment.failed
"""
import base64
import binascii
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, HTTPException, Request

from ..core.config import settings
from ..core.models import WebhookAck

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

SECRET_PREFIX = "whsec_"
HANDLED_EVENTS = {
    "subscription.created",
    "subscription.updated",
    "subscription.deleted",
    "payment.succeeded",
    "payment.failed",
}


class WebhookVerificationError(Exception):
    pass


def _secret_key(secret: str) -> bytes:
    if secret.startswith(SECRET_PREFIX):
        secret = secret[len(SECRET_PREFIX):]
    try:
        return base64.b64decode(secret)
    except (binascii.Error, ValueError):
        raise WebhookVerificationError("invalid_secret")


def sign_payload(secret: str, msg_id: str, timestamp: str, body: bytes) -> str:
    """Compute the `v1,<base64>` Svix signature for a message."""
    signed = f"{msg_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(_secret_key(secret), signed, hashlib.sha256).digest()
    return "v1," + base64.b64encode(digest).decode("ascii")


def verify_svix_signature(
    secret: str,
    body: bytes,
    msg_id: str,
    timestamp: str,
    signature_header: str,
    tolerance: Optional[int] = None,
) -> Dict[str, Any]:
    """Check timestamp freshness and signature; return the decoded event.

    The signature header may carry several space-separated `v1,<sig>` entries
    (secret rotation); any one match is enough.
    """
    tolerance = settings.webhook_tolerance if tolerance is None else tolerance
    try:
        sent_at = int(timestamp)
    except ValueError:
        raise WebhookVerificationError("invalid_timestamp")
    if abs(int(time.time()) - sent_at) > tolerance:
        raise WebhookVerificationError("timestamp_out_of_tolerance")

    expected = sign_payload(secret, msg_id, timestamp, body)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signature_header.split()):
        raise WebhookVerificationError("signature_mismatch")

    try:
        event = json.loads(body)
    except ValueError:
        raise WebhookVerificationError("invalid_json")
    if not isinstance(event, dict):
        raise WebhookVerificationError("event_must_be_object")
    return event


@router.post(
    "/billing",
    response_model=WebhookAck,
    summary="Receive Clerk billing events",
    description=(
        "Svix-signed billing events from Clerk. Requires `svix-id`, `svix-timestamp` and "
        "`svix-signature` headers. Events are verified and logged only."
    ),
)
async def billing_webhook(request: Request):
    secret = settings.clerk_billing_webhook_secret
    if not secret:
        logger.error("billing_webhook_missing_secret")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    msg_id = request.headers.get("svix-id")
    timestamp = request.headers.get("svix-timestamp")
    signature = request.headers.get("svix-signature")
    if not msg_id or not timestamp or not signature:
        raise HTTPException(status_code=400, detail="Missing svix headers")

    body = await request.body()
    try:
        event = verify_svix_signature(secret, body, msg_id, timestamp, signature)
    except WebhookVerificationError as e:
        logger.warning("billing_webhook_invalid_signature", svix_id=msg_id, error=str(e))
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    event_type = event.get("type")
    if event_type in HANDLED_EVENTS:
        # TODO: persist subscription/payment state once a user store exists
        logger.info("billing_webhook_received", event_type=event_type, svix_id=msg_id, data=event.get("data"))
    else:
        logger.info("billing_webhook_unhandled_event", event_type=event_type, svix_id=msg_id)

    return WebhookAck(received=True)
