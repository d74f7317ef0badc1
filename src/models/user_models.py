"""Pydantic models for Messenger users (public profile fields only)."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserAttributes(BaseModel):
    """Profile fields that may be written on find-or-create (all optional)."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_pic_url: Optional[str] = None


class UserCreate(UserAttributes):
    """Model for creating or upserting a user row."""

    facebook_id: int = Field(..., description="Facebook user ID (PSID)")


class User(UserCreate):
    """Full user record with database fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime


class FacebookUserInfo(BaseModel):
    """User info from the Facebook Graph API."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_pic: Optional[str] = None

    def to_user_attributes(self) -> UserAttributes:
        """Map Graph API field names onto the stored user columns."""
        return UserAttributes(
            first_name=self.first_name,
            last_name=self.last_name,
            profile_pic_url=self.profile_pic,
        )
