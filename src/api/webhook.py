"""Facebook webhook endpoints.

GET verifies the webhook subscription. POST accepts Messenger events,
checks the payload signature when an app secret is configured, and hands
each message to the MessageRequestHandler as a background task so
Facebook gets its 200 immediately.
"""

import hashlib
import hmac
import json
import logging

import sentry_sdk
from fastapi import APIRouter, BackgroundTasks, Request, Response
from fastapi.responses import PlainTextResponse

from src.config import get_settings
from src.constants import FACEBOOK_SIGNATURE_HEADER
from src.logging_config import mask_pii
from src.models.messenger import InboundMessage, MessengerWebhookPayload
from src.services.exceptions import DeliveryError
from src.services.message_handler import MessageRequestHandler, get_message_handler

logger = logging.getLogger(__name__)
router = APIRouter()


def verify_signature(body: bytes, signature: str | None, app_secret: str) -> bool:
    """Check an ``X-Hub-Signature-256`` header (``sha256=<hex digest>``)."""
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(app_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.removeprefix("sha256="))


def parse_inbound_messages(payload: MessengerWebhookPayload) -> list[InboundMessage]:
    """Extract every handleable message from a webhook payload."""
    messages = []
    for entry in payload.entry:
        for event in entry.get("messaging") or []:
            if not isinstance(event, dict):
                continue
            message = InboundMessage.from_messaging_event(event)
            if message is not None:
                messages.append(message)
    return messages


@router.get("")
async def verify_webhook(request: Request):
    """Facebook webhook verification endpoint."""
    settings = get_settings()

    mode = request.query_params.get("hub.mode")
    token = request.query_params.get("hub.verify_token")
    challenge = request.query_params.get("hub.challenge")

    if mode == "subscribe" and token == settings.facebook_verify_token:
        logger.info("Webhook verified successfully")
        return PlainTextResponse(challenge)

    logger.warning("Webhook verification failed")
    return Response(status_code=403)


@router.post("")
async def handle_webhook(request: Request, background_tasks: BackgroundTasks):
    """Handle incoming Facebook Messenger webhook events."""
    settings = get_settings()
    body = await request.body()

    if settings.facebook_app_secret and not verify_signature(
        body,
        request.headers.get(FACEBOOK_SIGNATURE_HEADER),
        settings.facebook_app_secret,
    ):
        logger.warning("Rejected webhook with invalid signature")
        return Response(status_code=403)

    try:
        payload = MessengerWebhookPayload.model_validate(json.loads(body))
    except ValueError:
        logger.warning("Rejected malformed webhook payload")
        return Response(status_code=400)

    if payload.object != "page":
        return {"status": "ignored"}

    for message in parse_inbound_messages(payload):
        background_tasks.add_task(process_message, message)

    return {"status": "ok"}


async def process_message(
    message: InboundMessage,
    *,
    handler: MessageRequestHandler | None = None,
) -> None:
    """Run the message handler for one inbound message.

    This is the outermost layer for a message, so failures are logged and
    reported here rather than raised into the background task runner.

    Args:
        message: The inbound message
        handler: Optional injected handler (for testing)
    """
    _handler = handler or get_message_handler()
    try:
        await _handler.handle(message)
    except DeliveryError as e:
        logger.error(
            "Failed to deliver reply to %s (status %s): %s",
            mask_pii(e.recipient_id),
            e.status_code,
            e,
        )
        sentry_sdk.capture_exception(e)
    except Exception as e:
        logger.error("Error handling message: %s", e, exc_info=True)
        sentry_sdk.capture_exception(e)
