"""User and canned message repository."""

from datetime import datetime, timedelta, timezone
from threading import Lock

import logfire

from src.constants import FACEBOOK_MESSAGE_CACHE_TTL_SECONDS
from src.db.client import get_supabase_client
from src.db.query_executor import timed_query
from src.logging_config import mask_pii
from src.models.facebook_message_models import (
    FacebookMessage,
    FacebookMessageCreate,
    MessageCategory,
)
from src.models.user_models import User, UserAttributes, UserCreate

USERS_TABLE = "users"
FACEBOOK_MESSAGES_TABLE = "facebook_messages"


class RepositoryError(Exception):
    """Raised when the store returns no row for a write that must yield one."""


def normalize_facebook_id(facebook_id: str | int) -> int:
    """Facebook ids arrive as strings in webhooks but are stored as bigint."""
    try:
        return int(str(facebook_id).strip())
    except ValueError:
        raise ValueError(f"Invalid Facebook id: {facebook_id!r}") from None


# =============================================================================
# Users
# =============================================================================


def get_user_by_facebook_id(facebook_id: str | int) -> User | None:
    """
    Get a user by Facebook id.

    Returns:
        User or None if no row exists
    """
    fb_id = normalize_facebook_id(facebook_id)
    with timed_query("get_user_by_facebook_id", facebook_id=mask_pii(fb_id)):
        client = get_supabase_client()
        result = (
            client.table(USERS_TABLE)
            .select("*")
            .eq("facebook_id", fb_id)
            .limit(1)
            .execute()
        )
    if result.data:
        return User.model_validate(result.data[0])
    return None


def find_or_create_user(
    facebook_id: str | int,
    attributes: UserAttributes | None = None,
) -> User:
    """
    Find the user for a Facebook id, creating it if absent.

    Runs as a single upsert on the unique ``facebook_id`` column, so
    concurrent calls for the same id never produce two rows. Provided
    (non-None) attributes overwrite the stored ones; with no attributes an
    existing row is left untouched.

    Raises:
        RepositoryError: If the store returns no row after the upsert
    """
    fb_id = normalize_facebook_id(facebook_id)
    attrs = attributes or UserAttributes()
    data = UserCreate(facebook_id=fb_id, **attrs.model_dump()).model_dump(
        exclude_none=True
    )
    has_attributes = len(data) > 1

    with timed_query(
        "find_or_create_user",
        facebook_id=mask_pii(fb_id),
        has_attributes=has_attributes,
    ):
        client = get_supabase_client()
        result = (
            client.table(USERS_TABLE)
            .upsert(
                data,
                on_conflict="facebook_id",
                ignore_duplicates=not has_attributes,
            )
            .execute()
        )

    if result.data:
        return User.model_validate(result.data[0])

    # ON CONFLICT DO NOTHING returns no row for an existing user
    existing = get_user_by_facebook_id(fb_id)
    if existing is None:
        raise RepositoryError(f"Failed to find or create user {mask_pii(fb_id)}")
    return existing


# =============================================================================
# Canned Facebook messages
# =============================================================================


def get_facebook_message(
    category: MessageCategory | str | int,
) -> FacebookMessage | None:
    """
    Get the canned message for a category.

    When several rows share a category, the most recently updated wins.

    Returns:
        FacebookMessage or None if none has been authored
    """
    cat = MessageCategory.parse(category)
    with timed_query("get_facebook_message", category=cat.label):
        client = get_supabase_client()
        result = (
            client.table(FACEBOOK_MESSAGES_TABLE)
            .select("*")
            .eq("category", int(cat))
            .order("updated_at", desc=True)
            .limit(1)
            .execute()
        )
    if result.data:
        return FacebookMessage.model_validate(result.data[0])
    return None


def list_facebook_messages(
    category: MessageCategory | str | int | None = None,
) -> list[FacebookMessage]:
    """List canned messages, optionally restricted to one category."""
    with timed_query("list_facebook_messages"):
        client = get_supabase_client()
        query = client.table(FACEBOOK_MESSAGES_TABLE).select("*")
        if category is not None:
            query = query.eq("category", int(MessageCategory.parse(category)))
        result = query.order("id").execute()
    return [FacebookMessage.model_validate(row) for row in result.data or []]


def create_facebook_message(message: FacebookMessageCreate) -> FacebookMessage:
    """
    Create a canned message.

    Validation (name, category and body present and non-blank) happens on
    the FacebookMessageCreate model before anything reaches the store.

    Raises:
        RepositoryError: If the insert returns no row
    """
    with timed_query(
        "create_facebook_message",
        name=message.name,
        category=message.category.label,
    ):
        client = get_supabase_client()
        result = (
            client.table(FACEBOOK_MESSAGES_TABLE).insert(message.to_row()).execute()
        )
    if not result.data:
        raise RepositoryError("Failed to create facebook message")

    created = FacebookMessage.model_validate(result.data[0])
    if _facebook_message_cache is not None:
        _facebook_message_cache.invalidate(created.category)
    return created


# =============================================================================
# Canned Message Cache
# =============================================================================


class FacebookMessageCache:
    """
    Thread-safe in-memory cache for canned messages.

    Canned messages are authored out of band and only read by the bot, so
    they are cached by category for a fixed TTL instead of being queried on
    every unrecognized message.
    """

    def __init__(self, ttl_seconds: int = FACEBOOK_MESSAGE_CACHE_TTL_SECONDS):
        self._cache: dict[MessageCategory, tuple[FacebookMessage, datetime]] = {}
        self._ttl = timedelta(seconds=ttl_seconds)
        self._lock = Lock()

    def get(self, category: MessageCategory) -> FacebookMessage | None:
        """Return the cached message, or None if missing or expired."""
        with self._lock:
            if category not in self._cache:
                return None
            message, stored_at = self._cache[category]
            age = datetime.now(timezone.utc) - stored_at
            if age < self._ttl:
                logfire.debug(
                    "Facebook message cache hit",
                    category=category.label,
                    cache_age_seconds=age.total_seconds(),
                )
                return message
            del self._cache[category]
            logfire.debug("Facebook message cache expired", category=category.label)
            return None

    def set(self, category: MessageCategory, message: FacebookMessage) -> None:
        with self._lock:
            self._cache[category] = (message, datetime.now(timezone.utc))

    def invalidate(self, category: MessageCategory) -> None:
        with self._lock:
            self._cache.pop(category, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._cache)


# Global cache instance
_facebook_message_cache: FacebookMessageCache | None = None


def get_facebook_message_cache(ttl_seconds: int | None = None) -> FacebookMessageCache:
    """Get or create the global canned message cache.

    ttl_seconds only applies when the cache is first created.
    """
    global _facebook_message_cache
    if _facebook_message_cache is None:
        if ttl_seconds is None:
            _facebook_message_cache = FacebookMessageCache()
        else:
            _facebook_message_cache = FacebookMessageCache(ttl_seconds=ttl_seconds)
    return _facebook_message_cache


def reset_facebook_message_cache() -> None:
    """Reset the global cache (primarily for testing)."""
    global _facebook_message_cache
    if _facebook_message_cache is not None:
        _facebook_message_cache.clear()
    _facebook_message_cache = None


def get_cached_facebook_message(
    category: MessageCategory | str | int,
) -> FacebookMessage | None:
    """Cache-first lookup of the canned message for a category."""
    cat = MessageCategory.parse(category)
    cache = get_facebook_message_cache()
    cached = cache.get(cat)
    if cached is not None:
        return cached

    message = get_facebook_message(cat)
    if message is not None:
        cache.set(cat, message)
    return message
