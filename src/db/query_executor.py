"""Timing and logging for store operations."""

import time
from contextlib import contextmanager
from typing import Any, Generator

import logfire


@contextmanager
def timed_query(
    operation_name: str,
    **log_context: Any,
) -> Generator[None, None, None]:
    """
    Time a Supabase operation and log its outcome.

    Logs the start of the operation, then either completion with elapsed
    time or the error details. Exceptions are re-raised unchanged.

    Args:
        operation_name: Name of the store operation (e.g. "find_or_create_user")
        **log_context: Attributes attached to every log record

    Example:
        with timed_query("get_facebook_message", category="fallback"):
            result = client.table("facebook_messages").select("*").execute()
    """
    start_time = time.time()

    logfire.debug(
        f"Starting {operation_name}",
        operation=operation_name,
        **log_context,
    )

    try:
        yield
    except Exception as e:
        logfire.error(
            f"{operation_name} failed",
            operation=operation_name,
            error=str(e),
            error_type=type(e).__name__,
            response_time_ms=(time.time() - start_time) * 1000,
            **log_context,
        )
        raise

    logfire.info(
        f"{operation_name} completed",
        operation=operation_name,
        response_time_ms=(time.time() - start_time) * 1000,
        **log_context,
    )
