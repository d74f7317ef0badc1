"""Message request handling: one inbound message in, one reply out.

The handler composes the collaborators that answer a Messenger message:
- User resolution (Graph API profile + find-or-create in the user store)
- Intent resolution (classifier, or a tapped quick reply)
- Reply construction (intent mapper)
- Delivery (Send API via a MessagingService)

All collaborators are injected, with production defaults, so tests can
substitute any of them.
"""

from __future__ import annotations

import asyncio
import logging

import logfire

from src.db.repository import find_or_create_user
from src.logging_config import mask_pii
from src.models.messenger import InboundMessage, OutgoingMessage
from src.models.user_models import User
from src.services.intent_classifier import (
    Intent,
    IntentClassifier,
    get_intent_classifier,
    intent_from_quick_reply,
)
from src.services.intent_mapper import IntentMapper, get_intent_mapper
from src.services.messaging_protocol import MessagingService, get_messaging_service

logger = logging.getLogger(__name__)


class MessageRequestHandler:
    """Handle one inbound Messenger message end-to-end.

    User resolution and intent resolution are independent, so they run
    concurrently; delivery waits for both.

    Example:
        >>> handler = MessageRequestHandler()
        >>> await handler.handle(inbound_message)

        # With substitutes for testing:
        >>> handler = MessageRequestHandler(
        ...     classifier=FakeClassifier(),
        ...     mapper=IntentMapper(fallback_lookup=lambda category: None),
        ...     messaging_service=MockMessagingService(),
        ... )
    """

    def __init__(
        self,
        classifier: IntentClassifier | None = None,
        mapper: IntentMapper | None = None,
        messaging_service: MessagingService | None = None,
    ):
        """Initialize the handler.

        Args:
            classifier: Intent classifier. Uses get_intent_classifier() if
                        not provided.
            mapper: Intent-to-message mapper. Uses get_intent_mapper() if
                    not provided.
            messaging_service: Delivery and user data client, bound to the
                               configured access token. Uses
                               get_messaging_service() if not provided.
        """
        self._classifier = classifier or get_intent_classifier()
        self._mapper = mapper or get_intent_mapper()
        self._messaging_service = messaging_service

    def _get_messaging_service(self) -> MessagingService:
        if self._messaging_service is None:
            self._messaging_service = get_messaging_service()
        return self._messaging_service

    async def handle(self, message: InboundMessage) -> OutgoingMessage:
        """Resolve the user and intent, then deliver exactly one reply.

        Args:
            message: The inbound message

        Returns:
            The delivered message

        Raises:
            DeliveryError: If the Send API call fails
        """
        messaging_service = self._get_messaging_service()

        user, intent = await asyncio.gather(
            self._resolve_user(message.sender_id, messaging_service),
            self._resolve_intent(message),
        )

        outgoing = self._mapper.map_intent_to_message(intent, user=user)

        await messaging_service.deliver(
            recipient_id=message.sender_id,
            message=outgoing,
        )

        logfire.info(
            "Message handled",
            sender_id=mask_pii(message.sender_id),
            intent=intent.value if intent else None,
            user_known=user is not None,
            quick_replies=len(outgoing.quick_replies or []),
        )
        return outgoing

    async def _resolve_user(
        self,
        sender_id: str,
        messaging_service: MessagingService,
    ) -> User | None:
        """Fetch the sender's profile and find-or-create their user record.

        Runs for every message. A failed profile lookup still creates the
        user, just without a name; a failed store call is logged and the
        reply goes out without user context.
        """
        user_data = await messaging_service.get_user_data(sender_id)
        attributes = user_data.to_user_attributes() if user_data else None
        if user_data is None:
            logger.info("No profile data for %s, continuing unnamed", mask_pii(sender_id))

        try:
            return find_or_create_user(sender_id, attributes)
        except Exception as e:
            logfire.error(
                "User resolution failed",
                sender_id=mask_pii(sender_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def _resolve_intent(self, message: InboundMessage) -> Intent | None:
        """Classify the text; a recognized quick reply payload takes precedence."""
        try:
            classified = self._classifier.classify(message.text)
        except Exception as e:
            logfire.error(
                "Intent classification failed, using fallback",
                sender_id=mask_pii(message.sender_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            classified = None

        return intent_from_quick_reply(message.quick_reply_payload) or classified


def get_message_handler(
    classifier: IntentClassifier | None = None,
    mapper: IntentMapper | None = None,
    messaging_service: MessagingService | None = None,
) -> MessageRequestHandler:
    """Factory function to create a MessageRequestHandler instance."""
    return MessageRequestHandler(
        classifier=classifier,
        mapper=mapper,
        messaging_service=messaging_service,
    )
