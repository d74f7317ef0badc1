"""Incoming/outgoing Facebook Messenger models."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from src.models.facebook_message_models import QuickReply


class MessengerWebhookPayload(BaseModel):
    """Facebook webhook payload."""

    object: str
    entry: list[dict] = Field(default_factory=list)


class InboundMessage(BaseModel):
    """A single inbound Messenger message, alive for one webhook dispatch."""

    sender_id: str
    recipient_id: str
    timestamp: int = Field(..., description="Epoch milliseconds")
    text: str = ""
    quick_reply_payload: Optional[str] = None
    mid: Optional[str] = None
    seq: Optional[int] = None
    messaging: dict[str, Any] = Field(
        default_factory=dict, description="Raw messaging envelope"
    )

    @classmethod
    def from_messaging_event(cls, event: dict[str, Any]) -> "InboundMessage | None":
        """Build from one entry of ``entry[].messaging``.

        Returns None for events that carry no message text or quick reply
        (delivery/read receipts, attachments-only messages, echoes).
        """
        sender_id = (event.get("sender") or {}).get("id")
        message = event.get("message")
        if not sender_id or not isinstance(message, dict):
            return None
        if message.get("is_echo"):
            return None

        text = message.get("text") or ""
        payload = (message.get("quick_reply") or {}).get("payload")
        if not text and not payload:
            return None

        return cls(
            sender_id=str(sender_id),
            recipient_id=str((event.get("recipient") or {}).get("id", "")),
            timestamp=event.get("timestamp") or 0,
            text=text,
            quick_reply_payload=payload,
            mid=message.get("mid"),
            seq=message.get("seq"),
            messaging=event,
        )


class OutgoingMessage(BaseModel):
    """Message handed to the Send API."""

    text: str
    quick_replies: Optional[list[QuickReply]] = None

    def to_payload(self) -> dict[str, Any]:
        """Send API ``message`` envelope.

        The ``quick_replies`` key is omitted entirely when there are none.
        """
        message: dict[str, Any] = {"text": self.text}
        if self.quick_replies:
            message["quick_replies"] = [qr.model_dump() for qr in self.quick_replies]
        return {"message": message}
