"""Facebook Graph API client: user profile lookup and Send API delivery."""

import time
from typing import Any

import httpx
import logfire

from src.config import get_settings
from src.constants import (
    FACEBOOK_GRAPH_API_URL,
    FACEBOOK_GRAPH_API_VERSION,
    FACEBOOK_USER_DATA_FIELDS,
)
from src.logging_config import mask_pii, redact_tokens
from src.models.messenger import OutgoingMessage
from src.models.user_models import FacebookUserInfo
from src.services.exceptions import DeliveryError


def user_data_url(user_id: str) -> str:
    return f"{FACEBOOK_GRAPH_API_URL}/{user_id}"


def send_api_url() -> str:
    return f"{FACEBOOK_GRAPH_API_URL}/{FACEBOOK_GRAPH_API_VERSION}/me/messages"


async def get_user_data(
    access_token: str,
    user_id: str,
) -> FacebookUserInfo | None:
    """
    Get a Messenger user's public profile from the Graph API.

    Fetches first_name, last_name and profile_pic. Failures (non-200,
    timeouts, transport errors) are logged and yield None so the caller
    can carry on with an unnamed profile.
    """
    params = {
        "fields": ",".join(FACEBOOK_USER_DATA_FIELDS),
        "access_token": access_token,
    }
    logfire.info(
        "Fetching user data from Facebook",
        user_id=mask_pii(user_id),
        params=redact_tokens(params),
    )
    try:
        settings = get_settings()
        async with httpx.AsyncClient(
            timeout=settings.facebook_api_timeout_seconds
        ) as client:
            response = await client.get(user_data_url(user_id), params=params)
            if response.status_code == 200:
                data = response.json()
                if not isinstance(data, dict):
                    logfire.error(
                        "Unexpected user data response shape",
                        user_id=mask_pii(user_id),
                        response_type=type(data).__name__,
                    )
                    return None
                logfire.info(
                    "User data fetched successfully",
                    user_id=mask_pii(user_id),
                    has_name=bool(data.get("first_name")),
                )
                return FacebookUserInfo(
                    id=str(data.get("id", user_id)),
                    first_name=data.get("first_name"),
                    last_name=data.get("last_name"),
                    profile_pic=data.get("profile_pic"),
                )
            logfire.error(
                "Failed to fetch user data",
                user_id=mask_pii(user_id),
                status_code=response.status_code,
                response_body=response.text[:500],
            )
            return None
    except (httpx.HTTPError, ValueError) as e:
        logfire.error(
            "Error fetching user data",
            user_id=mask_pii(user_id),
            error=str(e),
            error_type=type(e).__name__,
        )
        return None


async def deliver(
    access_token: str,
    recipient_id: str,
    message: OutgoingMessage,
) -> str | None:
    """
    Deliver a message through the Send API.

    Args:
        access_token: Facebook Page access token
        recipient_id: Facebook user ID (PSID) to send to
        message: Text and optional quick replies

    Returns:
        The Send API message_id, if the response carried one

    Raises:
        DeliveryError: On a non-2xx response or a transport error
    """
    start_time = time.time()
    payload: dict[str, Any] = {
        "recipient": {"id": recipient_id},
        **message.to_payload(),
    }

    logfire.info(
        "Sending Facebook message",
        recipient_id=mask_pii(recipient_id),
        message_length=len(message.text),
        quick_reply_count=len(message.quick_replies or []),
        api_version=FACEBOOK_GRAPH_API_VERSION,
    )

    try:
        settings = get_settings()
        async with httpx.AsyncClient(
            timeout=settings.facebook_api_timeout_seconds
        ) as client:
            response = await client.post(
                send_api_url(),
                params={"access_token": access_token},
                json=payload,
            )
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logfire.error(
            "Facebook message send failed",
            recipient_id=mask_pii(recipient_id),
            status_code=e.response.status_code,
            response_body=e.response.text[:500],
            response_time_ms=(time.time() - start_time) * 1000,
        )
        raise DeliveryError(
            f"Send API returned {e.response.status_code}",
            recipient_id=recipient_id,
            status_code=e.response.status_code,
        ) from e
    except httpx.RequestError as e:
        logfire.error(
            "Facebook API request error",
            recipient_id=mask_pii(recipient_id),
            error=str(e),
            error_type=type(e).__name__,
            response_time_ms=(time.time() - start_time) * 1000,
        )
        raise DeliveryError(
            f"Send API request failed: {type(e).__name__}",
            recipient_id=recipient_id,
        ) from e

    # The message is already sent; an unreadable body only loses the id
    message_id = None
    try:
        body = response.json() if response.content else None
    except ValueError:
        body = None
    if isinstance(body, dict):
        message_id = body.get("message_id")
    logfire.info(
        "Facebook message sent successfully",
        recipient_id=mask_pii(recipient_id),
        status_code=response.status_code,
        message_id=message_id,
        response_time_ms=(time.time() - start_time) * 1000,
    )
    return message_id
