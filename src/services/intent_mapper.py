"""Map intents to outgoing Messenger messages."""

from typing import Callable

import logfire

from src.constants import (
    ACCOUNT_CONFIRMED_TEMPLATE,
    ACCOUNT_CONFIRMED_TEXT,
    ADD_WINE_TEMPLATE,
    BRAND_NAME,
    CREATE_ACCOUNT_ACCEPT_TITLE,
    CREATE_ACCOUNT_DECLINE_TITLE,
    CREATE_ACCOUNT_PAYLOAD,
    CREATE_ACCOUNT_TEXT,
    DECLINE_ACCOUNT_PAYLOAD,
    DEFAULT_FALLBACK_TEXT,
)
from src.db.repository import get_cached_facebook_message
from src.models.facebook_message_models import (
    FacebookMessage,
    MessageCategory,
    QuickReply,
)
from src.models.messenger import OutgoingMessage
from src.models.user_models import User
from src.services.intent_classifier import Intent

FallbackLookup = Callable[[MessageCategory], FacebookMessage | None]

CREATE_ACCOUNT_QUICK_REPLIES = [
    QuickReply(title=CREATE_ACCOUNT_ACCEPT_TITLE, payload=CREATE_ACCOUNT_PAYLOAD),
    QuickReply(title=CREATE_ACCOUNT_DECLINE_TITLE, payload=DECLINE_ACCOUNT_PAYLOAD),
]


class IntentMapper:
    """Build the reply for a resolved intent.

    Unrecognized messages (intent None) get the fallback canned message
    from the store. If the store has none, or cannot be read, a built-in
    text is used so the user always gets an answer.

    Example:
        >>> mapper = IntentMapper(fallback_lookup=lambda category: None)
        >>> mapper.map_intent_to_message(Intent.ADD_RED).text
        'How lovely! Would you like to add a new bottle of red to your cellar?'
    """

    def __init__(self, fallback_lookup: FallbackLookup | None = None):
        self._fallback_lookup = fallback_lookup or get_cached_facebook_message

    def map_intent_to_message(
        self,
        intent: Intent | None,
        user: User | None = None,
    ) -> OutgoingMessage:
        if intent is Intent.ADD_RED:
            return OutgoingMessage(text=ADD_WINE_TEMPLATE.format(colour="red"))
        if intent is Intent.ADD_WHITE:
            return OutgoingMessage(text=ADD_WINE_TEMPLATE.format(colour="white"))
        if intent is Intent.CREATE_ACCOUNT:
            return OutgoingMessage(
                text=CREATE_ACCOUNT_TEXT,
                quick_replies=list(CREATE_ACCOUNT_QUICK_REPLIES),
            )
        if intent is Intent.ACCOUNT_CONFIRMED:
            return self._account_confirmed(user)
        return self._fallback()

    def _account_confirmed(self, user: User | None) -> OutgoingMessage:
        if user is not None and user.first_name:
            return OutgoingMessage(
                text=ACCOUNT_CONFIRMED_TEMPLATE.format(
                    brand=BRAND_NAME, name=user.first_name
                )
            )
        return OutgoingMessage(text=ACCOUNT_CONFIRMED_TEXT)

    def _fallback(self) -> OutgoingMessage:
        # Canned quick replies are not attached to the fallback reply
        try:
            canned = self._fallback_lookup(MessageCategory.FALLBACK)
        except Exception as e:
            logfire.error(
                "Fallback message lookup failed, using default text",
                error=str(e),
                error_type=type(e).__name__,
            )
            canned = None

        if canned is None:
            logfire.warn("No fallback message authored, using default text")
            return OutgoingMessage(text=DEFAULT_FALLBACK_TEXT)
        return OutgoingMessage(text=canned.body)


def get_intent_mapper() -> IntentMapper:
    return IntentMapper()
