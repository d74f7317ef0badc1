"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Messenger data: sample_facebook_user_info, sample_user, inbound_message_factory
2. Collaborators: mock_messaging_service, mock_classifier, fallback_message
3. Infrastructure: mock_supabase_client, mock_settings, mock_logfire, test_client
"""

import os
from contextlib import contextmanager
from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

import pytest

# Tests never ship data to Logfire
os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

import logfire

from src.db.repository import reset_facebook_message_cache
from src.models.facebook_message_models import FacebookMessage
from src.models.messenger import InboundMessage
from src.models.user_models import FacebookUserInfo, User
from src.services.messaging_protocol import MockMessagingService

TEST_ACCESS_TOKEN = "test-page-token"
SENDER_ID = "1234"
RECIPIENT_ID = "5678"


@pytest.fixture(autouse=True)
def _reset_message_cache():
    """Keep the process-wide canned message cache out of test interactions."""
    reset_facebook_message_cache()
    yield
    reset_facebook_message_cache()


# =============================================================================
# Messenger Data
# =============================================================================


@pytest.fixture
def sample_facebook_user_info():
    """Graph API profile for the test sender."""
    return FacebookUserInfo(
        id=SENDER_ID,
        first_name="Peter",
        last_name="Johnstone",
        profile_pic="https://platform-lookaside.fbsbx.com/platform/profilepic/",
    )


@pytest.fixture
def sample_user_row():
    """users row as returned by Supabase."""
    now = datetime.now(timezone.utc).isoformat()
    return {
        "id": 1,
        "facebook_id": int(SENDER_ID),
        "first_name": "Peter",
        "last_name": "Johnstone",
        "profile_pic_url": "https://platform-lookaside.fbsbx.com/platform/profilepic/",
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def sample_user(sample_user_row):
    return User.model_validate(sample_user_row)


@pytest.fixture
def fallback_message_row():
    """facebook_messages row for the fallback category."""
    now = datetime.now(timezone.utc).isoformat()
    return {
        "id": 7,
        "name": "Default fallback",
        "category": 0,
        "body": "Sorry, I didn't get that. Tell me about a bottle you've opened!",
        "quick_replies": [],
        "buttons": None,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def fallback_message(fallback_message_row):
    return FacebookMessage.model_validate(fallback_message_row)


@pytest.fixture
def messaging_event():
    """Build a raw Messenger messaging event."""

    def _build(text="Hello, world", quick_reply_payload=None, sender_id=SENDER_ID):
        message = {
            "mid": "0j3SQeNnpIDLxBwJl7hRofACd_36bJGN3qXKXv32Bok8GqJfA284e1hsnOagFiVZsbqLLainVGIVURWOlNJ4Tw",
            "seq": 2171281,
            "text": text,
        }
        if quick_reply_payload is not None:
            message["quick_reply"] = {"payload": quick_reply_payload}
        return {
            "sender": {"id": sender_id},
            "recipient": {"id": RECIPIENT_ID},
            "timestamp": 1528049653543,
            "message": message,
        }

    return _build


@pytest.fixture
def inbound_message_factory(messaging_event):
    """Build an InboundMessage from text and an optional quick reply payload."""

    def _build(text="Hello, world", quick_reply_payload=None):
        return InboundMessage.from_messaging_event(
            messaging_event(text=text, quick_reply_payload=quick_reply_payload)
        )

    return _build


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def mock_messaging_service(sample_facebook_user_info):
    """Recording messaging service that knows the test sender's profile."""
    return MockMessagingService(user_data=sample_facebook_user_info)


@pytest.fixture
def mock_classifier():
    """Classifier stub returning no intent unless configured."""
    classifier = Mock()
    classifier.classify = Mock(return_value=None)
    return classifier


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client with chainable query builders.

    Every builder method returns the same builder, so any chain of
    select/eq/order/limit/upsert/insert ends in ``builder.execute()``.
    Set ``client.table.return_value.execute.return_value.data`` to shape
    results.
    """
    client = MagicMock()
    builder = MagicMock()
    for method in ("select", "eq", "order", "limit", "upsert", "insert", "update"):
        getattr(builder, method).return_value = builder
    builder.execute.return_value = MagicMock(data=[])
    client.table.return_value = builder
    return client


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock application settings."""
    from src.config import Settings

    settings = Settings(
        facebook_page_access_token=TEST_ACCESS_TOKEN,
        facebook_verify_token="test-verify-token",
        facebook_app_secret=None,
        supabase_url="https://test.supabase.co",
        supabase_service_key="test-service-key",
        env="local",
        logfire_token=None,
    )

    monkeypatch.setattr("src.config.get_settings", lambda: settings)
    # Patch where get_settings is used so request handlers see the mock
    monkeypatch.setattr("src.main.get_settings", lambda: settings)
    monkeypatch.setattr("src.api.webhook.get_settings", lambda: settings)
    monkeypatch.setattr("src.services.facebook_service.get_settings", lambda: settings)
    monkeypatch.setattr("src.services.messaging_protocol.get_settings", lambda: settings)
    return settings


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    This fixture patches Logfire to capture log calls for assertion.
    """
    captured_logs = []

    def capture(level):
        def _capture(*args, **kwargs):
            captured_logs.append((level, args, kwargs))

        return _capture

    with (
        patch("logfire.info", side_effect=capture("info")),
        patch("logfire.warn", side_effect=capture("warn")),
        patch("logfire.error", side_effect=capture("error")),
        patch("logfire.debug", side_effect=capture("debug")),
    ):
        yield captured_logs


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Mock Logfire for testing without actual logging.

    Patches both the logfire module and the module-level imports in our
    code, so spans and log calls are no-ops.
    """

    @contextmanager
    def mock_span(*args, **kwargs):
        yield {}

    mock_logfire_module = MagicMock()
    mock_logfire_module.span = mock_span

    for attr in (
        "info",
        "warn",
        "error",
        "debug",
        "span",
        "configure",
        "instrument_fastapi",
        "instrument_pydantic",
    ):
        monkeypatch.setattr(logfire, attr, getattr(mock_logfire_module, attr))

    for module in (
        "src.services.facebook_service",
        "src.services.intent_mapper",
        "src.services.message_handler",
        "src.db.repository",
        "src.db.query_executor",
        "src.middleware.correlation_id",
        "src.logging_config",
        "src.main",
    ):
        monkeypatch.setattr(f"{module}.logfire", mock_logfire_module)

    return mock_logfire_module


@pytest.fixture
def test_client(mock_settings, mock_logfire):
    """FastAPI TestClient for E2E tests (lifespan not run)."""
    from fastapi.testclient import TestClient

    from src.main import app

    return TestClient(app)
