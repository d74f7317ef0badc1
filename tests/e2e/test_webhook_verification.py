"""End-to-end tests for webhook verification."""

import pytest


class TestWebhookVerification:
    """Test Facebook webhook verification endpoint."""

    def test_verification_success(self, test_client):
        response = test_client.get(
            "/webhook",
            params={
                "hub.mode": "subscribe",
                "hub.verify_token": "test-verify-token",
                "hub.challenge": "challenge-123",
            },
        )

        assert response.status_code == 200
        assert response.text == "challenge-123"

    @pytest.mark.parametrize(
        "params",
        [
            {"hub.mode": "subscribe", "hub.verify_token": "wrong-token", "hub.challenge": "c"},
            {"hub.mode": "unsubscribe", "hub.verify_token": "test-verify-token", "hub.challenge": "c"},
            {"hub.verify_token": "test-verify-token", "hub.challenge": "c"},
            {},
        ],
    )
    def test_verification_refused(self, test_client, params):
        response = test_client.get("/webhook", params=params)

        assert response.status_code == 403
