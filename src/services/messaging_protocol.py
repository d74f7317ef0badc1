"""Messaging abstraction protocols for decoupling from the Facebook API.

The message handler talks to a MessagingService rather than to the Graph
API functions directly, so tests can substitute a recording fake without
any httpx mocking.
"""

from typing import Protocol

from src.config import get_settings
from src.models.messenger import OutgoingMessage
from src.models.user_models import FacebookUserInfo


class MessagingService(Protocol):
    """Protocol for delivering messages and fetching user data."""

    async def deliver(
        self,
        recipient_id: str,
        message: OutgoingMessage,
    ) -> str | None:
        """Deliver a message to a recipient.

        Returns:
            Platform message id, if any

        Raises:
            DeliveryError: If the message could not be delivered
        """
        ...

    async def get_user_data(
        self,
        user_id: str,
    ) -> FacebookUserInfo | None:
        """Get user profile data, or None if unavailable."""
        ...


class FacebookMessagingService:
    """Facebook Messenger implementation of MessagingService.

    Bound to a single page access token, which is used for both profile
    lookups and delivery.

    Example:
        >>> service = FacebookMessagingService(access_token="...")
        >>> await service.deliver("1234", OutgoingMessage(text="Hello!"))
        'm_abc'
    """

    def __init__(self, access_token: str):
        if not access_token:
            raise ValueError("access_token is required")
        self._token = access_token

    async def deliver(self, recipient_id: str, message: OutgoingMessage) -> str | None:
        from src.services.facebook_service import deliver

        return await deliver(
            access_token=self._token,
            recipient_id=recipient_id,
            message=message,
        )

    async def get_user_data(self, user_id: str) -> FacebookUserInfo | None:
        from src.services.facebook_service import get_user_data

        return await get_user_data(access_token=self._token, user_id=user_id)


class MockMessagingService:
    """Recording implementation for testing.

    Example:
        >>> service = MockMessagingService()
        >>> await service.deliver("1234", OutgoingMessage(text="Hi"))
        >>> service.delivered
        [('1234', OutgoingMessage(text='Hi', quick_replies=None))]
    """

    def __init__(
        self,
        user_data: FacebookUserInfo | None = None,
        deliver_error: Exception | None = None,
    ):
        """Initialize mock service.

        Args:
            user_data: Returned from get_user_data (None by default)
            deliver_error: Raised from deliver after recording the call
        """
        self._user_data = user_data
        self._deliver_error = deliver_error
        self.delivered: list[tuple[str, OutgoingMessage]] = []
        self.get_user_data_calls: list[str] = []

    async def deliver(self, recipient_id: str, message: OutgoingMessage) -> str | None:
        self.delivered.append((recipient_id, message))
        if self._deliver_error is not None:
            raise self._deliver_error
        return None

    async def get_user_data(self, user_id: str) -> FacebookUserInfo | None:
        self.get_user_data_calls.append(user_id)
        return self._user_data


def get_messaging_service(access_token: str | None = None) -> FacebookMessagingService:
    """Factory for the MessagingService used in production.

    Args:
        access_token: Page access token; defaults to the configured
            FB_ACCESS_TOKEN / FACEBOOK_PAGE_ACCESS_TOKEN
    """
    token = access_token or get_settings().facebook_page_access_token
    return FacebookMessagingService(access_token=token)
