"""Database client and repository layer."""

from src.db.query_executor import timed_query
from src.db.repository import (
    FacebookMessageCache,
    get_facebook_message_cache,
    reset_facebook_message_cache,
)

__all__ = [
    "timed_query",
    "FacebookMessageCache",
    "get_facebook_message_cache",
    "reset_facebook_message_cache",
]
