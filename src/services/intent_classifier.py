"""Keyword-based intent classification for free-text Messenger messages."""

import re
from enum import Enum
from typing import Protocol

from src.constants import CREATE_ACCOUNT_PAYLOAD


class Intent(str, Enum):
    """Symbolic purpose of a user's message."""

    ADD_RED = "add_red"
    ADD_WHITE = "add_white"
    CREATE_ACCOUNT = "create_account"
    ACCOUNT_CONFIRMED = "account_confirmed"


class IntentClassifier(Protocol):
    """Maps raw message text to an Intent, or None when unrecognized.

    Implementations must be pure so they can run alongside other work
    without synchronization.
    """

    def classify(self, text: str) -> Intent | None: ...


# Colour words, mapped to the intent they trigger
COLOUR_INTENTS = {
    "red": Intent.ADD_RED,
    "rouge": Intent.ADD_RED,
    "white": Intent.ADD_WHITE,
    "blanc": Intent.ADD_WHITE,
}

# Words that make a colour mention about wine rather than anything else
WINE_CUES = frozenset([
    "bottle", "bottles", "glass", "glasses", "wine", "wines", "vintage",
    "had", "drank", "drinking", "opened", "tried", "tasted", "bought",
])

ACCOUNT_KEYWORDS = frozenset(["account", "signup", "register", "join"])
ACCOUNT_PHRASES = ("sign up", "sign me up")

_WORD_RE = re.compile(r"[a-z']+")

QUICK_REPLY_INTENTS = {
    CREATE_ACCOUNT_PAYLOAD: Intent.ACCOUNT_CONFIRMED,
}


def tokenize(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


class KeywordIntentClassifier:
    """Rule-based classifier.

    A colour word together with a wine cue is an add-wine intent (the
    first colour mentioned wins). Otherwise account vocabulary is a
    create-account intent. Anything else is unrecognized.
    """

    def classify(self, text: str) -> Intent | None:
        if not text or not isinstance(text, str):
            return None

        words = tokenize(text)
        if not words:
            return None

        if WINE_CUES.intersection(words):
            for word in words:
                if word in COLOUR_INTENTS:
                    return COLOUR_INTENTS[word]

        lowered = " ".join(words)
        if ACCOUNT_KEYWORDS.intersection(words) or any(
            phrase in lowered for phrase in ACCOUNT_PHRASES
        ):
            return Intent.CREATE_ACCOUNT

        return None


def intent_from_quick_reply(payload: str | None) -> Intent | None:
    """Intent signalled by a tapped quick reply, if the payload is known."""
    if not payload:
        return None
    return QUICK_REPLY_INTENTS.get(payload)


def get_intent_classifier() -> IntentClassifier:
    return KeywordIntentClassifier()
