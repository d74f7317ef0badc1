"""End-to-end tests for webhook message processing flow."""

import hashlib
import hmac
import json
from unittest.mock import patch

import pytest

from src.constants import DEFAULT_FALLBACK_TEXT
from src.services.exceptions import DeliveryError
from src.services.intent_classifier import KeywordIntentClassifier
from src.services.intent_mapper import IntentMapper
from src.services.message_handler import MessageRequestHandler
from src.services.messaging_protocol import MockMessagingService


def webhook_payload(*events, object_type="page"):
    return {
        "object": object_type,
        "entry": [{"id": "5678", "time": 1528049653543, "messaging": list(events)}],
    }


@pytest.fixture
def pipeline(mock_messaging_service, sample_user):
    """Route webhook background tasks through a handler with a mock Send API."""
    handler = MessageRequestHandler(
        classifier=KeywordIntentClassifier(),
        mapper=IntentMapper(fallback_lookup=lambda category: None),
        messaging_service=mock_messaging_service,
    )
    with (
        patch("src.api.webhook.get_message_handler", return_value=handler),
        patch(
            "src.services.message_handler.find_or_create_user",
            return_value=sample_user,
        ) as mock_find_or_create,
    ):
        yield mock_messaging_service, mock_find_or_create


class TestWebhookMessageFlow:
    """Test complete webhook message processing flow."""

    def test_wine_message_gets_add_wine_reply(self, test_client, pipeline, messaging_event):
        service, mock_find_or_create = pipeline

        response = test_client.post(
            "/webhook",
            json=webhook_payload(messaging_event("Just opened a bottle of red")),
        )

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert len(service.delivered) == 1
        recipient_id, message = service.delivered[0]
        assert recipient_id == "1234"
        assert "bottle of red" in message.text
        mock_find_or_create.assert_called_once()
        assert mock_find_or_create.call_args.args[0] == "1234"

    def test_account_flow(self, test_client, pipeline, messaging_event):
        service, _ = pipeline

        test_client.post("/webhook", json=webhook_payload(messaging_event("I want an account")))
        test_client.post(
            "/webhook",
            json=webhook_payload(
                messaging_event("Yes please!", quick_reply_payload="CREATE_ACCOUNT")
            ),
        )

        offer, confirmation = (message for _, message in service.delivered)
        assert [reply.payload for reply in offer.quick_replies] == [
            "CREATE_ACCOUNT",
            "DECLINE_ACCOUNT",
        ]
        assert "Peter" in confirmation.text

    def test_unrecognized_message_gets_fallback(self, test_client, pipeline, messaging_event):
        service, _ = pipeline

        test_client.post("/webhook", json=webhook_payload(messaging_event("Hello, world")))

        assert service.delivered[0][1].text == DEFAULT_FALLBACK_TEXT

    def test_one_reply_per_message(self, test_client, pipeline, messaging_event):
        service, _ = pipeline

        test_client.post(
            "/webhook",
            json=webhook_payload(
                messaging_event("Hello"),
                {"sender": {"id": "1234"}, "delivery": {"watermark": 1}},
                messaging_event("A glass of white"),
            ),
        )

        assert len(service.delivered) == 2

    def test_echo_ignored(self, test_client, pipeline, messaging_event):
        service, _ = pipeline
        event = messaging_event("Sent by the page")
        event["message"]["is_echo"] = True

        response = test_client.post("/webhook", json=webhook_payload(event))

        assert response.status_code == 200
        assert service.delivered == []

    def test_delivery_failure_still_acknowledged(
        self, test_client, pipeline, messaging_event
    ):
        service, _ = pipeline
        service._deliver_error = DeliveryError("down", recipient_id="1234", status_code=503)

        with patch("src.api.webhook.sentry_sdk") as mock_sentry:
            response = test_client.post(
                "/webhook", json=webhook_payload(messaging_event("Hello"))
            )

        assert response.status_code == 200
        mock_sentry.capture_exception.assert_called_once()

    def test_non_page_object_ignored(self, test_client, pipeline, messaging_event):
        service, _ = pipeline

        response = test_client.post(
            "/webhook",
            json=webhook_payload(messaging_event("Hello"), object_type="user"),
        )

        assert response.json() == {"status": "ignored"}
        assert service.delivered == []

    def test_null_messaging_acknowledged(self, test_client, pipeline):
        service, _ = pipeline

        response = test_client.post(
            "/webhook",
            json={"object": "page", "entry": [{"id": "1", "messaging": None}]},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert service.delivered == []

    def test_malformed_body(self, test_client, pipeline):
        response = test_client.post(
            "/webhook",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400


class TestWebhookSignature:
    @pytest.fixture
    def app_secret(self, mock_settings):
        mock_settings.facebook_app_secret = "app-secret"
        return "app-secret"

    def test_valid_signature_accepted(
        self, test_client, pipeline, app_secret, messaging_event
    ):
        service, _ = pipeline
        body = json.dumps(webhook_payload(messaging_event("Hello"))).encode()
        signature = hmac.new(app_secret.encode(), body, hashlib.sha256).hexdigest()

        response = test_client.post(
            "/webhook",
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-Hub-Signature-256": f"sha256={signature}",
            },
        )

        assert response.status_code == 200
        assert len(service.delivered) == 1

    def test_missing_signature_rejected(
        self, test_client, pipeline, app_secret, messaging_event
    ):
        service, _ = pipeline

        response = test_client.post(
            "/webhook", json=webhook_payload(messaging_event("Hello"))
        )

        assert response.status_code == 403
        assert service.delivered == []
