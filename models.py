# models.py
# Pydantic records persisted in the JSON store. Attribute names are snake_case,
# the persisted / wire names are the camelCase aliases.
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EVERYONE = "Everyone"
DEFAULT_GENDER = "Secret"
DEFAULT_INTERESTED_IN = EVERYONE
DEFAULT_LOOKING_FOR = "Connection"
DEFAULT_BIO = "A mysterious cutie..."


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    email: str
    age: int
    bio: Optional[str] = DEFAULT_BIO
    # free-form tags, not enums; None means "use the default"
    gender: Optional[str] = DEFAULT_GENDER
    interested_in: Optional[str] = Field(DEFAULT_INTERESTED_IN, alias="interestedIn")
    looking_for: Optional[str] = Field(DEFAULT_LOOKING_FOR, alias="lookingFor")
    interests: List[str] = Field(default_factory=list)
    img: Optional[str] = None
    social_qr: Optional[str] = Field(None, alias="socialQr")
    registered_at: datetime = Field(..., alias="registeredAt")

    @field_validator("interests", mode="before")
    @classmethod
    def _tags_as_text(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return [str(tag) for tag in value]
        return value


class ScoredMatch(User):
    match_score: int = Field(..., alias="matchScore")


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender: int = Field(..., alias="from")
    recipient: int = Field(..., alias="to")
    text: str
    timestamp: datetime

    # older data can hold numbers here; keep them as text
    @field_validator("text", mode="before")
    @classmethod
    def _text_as_str(cls, value):
        return value if value is None or isinstance(value, str) else str(value)


class Snapshot(BaseModel):
    """The whole database: every user and every message, in insertion order."""

    users: List[User] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)

    @field_validator("users", "messages", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return [] if value is None else value

    def find_user(self, user_id: int) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def find_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((u for u in self.users if u.email.lower() == email), None)


class AdminStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(..., alias="totalUsers")
    total_messages: int = Field(..., alias="totalMessages")
    active_matches: int = Field(..., alias="activeMatches")


def dump(model: BaseModel) -> dict:
    """JSON-ready dict with the persisted (camelCase) field names."""
    return model.model_dump(mode="json", by_alias=True)
