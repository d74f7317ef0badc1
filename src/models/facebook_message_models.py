"""Pydantic models for canned Facebook messages."""

from datetime import datetime
from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.constants import QUICK_REPLY_CONTENT_TYPE_TEXT


class MessageCategory(IntEnum):
    """Category of a canned message, persisted as an integer discriminator."""

    FALLBACK = 0

    @classmethod
    def parse(cls, value: "str | int | MessageCategory") -> "MessageCategory":
        """Accept an enum member, its integer value or its lowercase name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and not value.isdigit():
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown message category: {value!r}") from None
        return cls(int(value))

    @property
    def label(self) -> str:
        return self.name.lower()


class QuickReply(BaseModel):
    """Messenger quick reply button."""

    content_type: str = QUICK_REPLY_CONTENT_TYPE_TEXT
    title: str
    payload: str


class Button(BaseModel):
    """Messenger template button (postback or web_url)."""

    type: str = "postback"
    title: str
    payload: Optional[str] = None
    url: Optional[str] = None


class FacebookMessageCreate(BaseModel):
    """Model for authoring a canned message.

    name, category and body are mandatory and must not be blank.
    """

    name: str = Field(..., min_length=1)
    category: MessageCategory
    body: str = Field(..., min_length=1)
    quick_replies: list[QuickReply] = Field(default_factory=list)
    buttons: list[Button] = Field(default_factory=list)

    @field_validator("name", "body")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value):
        if value is None or value == "":
            raise ValueError("category is required")
        return MessageCategory.parse(value)

    def to_row(self) -> dict:
        """Serialize for insertion (jsonb columns as plain lists)."""
        data = self.model_dump(mode="json")
        data["category"] = int(self.category)
        return data


class FacebookMessage(FacebookMessageCreate):
    """Canned message with database fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime

    @field_validator("quick_replies", "buttons", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return value or []
