"""Exceptions raised while handling an inbound Messenger message."""


class MessageHandlerError(Exception):
    """Base exception for message handling errors."""

    pass


class DeliveryError(MessageHandlerError):
    """Raised when the Send API rejects or never receives a reply."""

    def __init__(
        self,
        message: str,
        *,
        recipient_id: str,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.recipient_id = recipient_id
        self.status_code = status_code
