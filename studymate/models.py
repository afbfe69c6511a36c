from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class User(CamelModel):
    id: str
    email: str
    password_hash: str
    name: str
    created_at: datetime = Field(default_factory=utcnow)
    last_login: datetime = Field(default_factory=utcnow)

    def public(self, include_last_login: bool = False) -> Dict[str, Any]:
        fields = {"id", "email", "name", "created_at"}
        if include_last_login:
            fields.add("last_login")
        return self.model_dump(by_alias=True, mode="json", include=fields)


class StudySession(CamelModel):
    id: str
    user_id: str
    original_text: str
    full_text_length: int
    results: Dict[str, Any] = Field(default_factory=dict)
    features: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)
    word_count: int = 0
    input_type: str = "text"
    file_name: Optional[str] = None


class TokenIdentity(CamelModel):
    user_id: str
    email: str


# ----------------- Request bodies -----------------
# Fields are optional so missing values reach the handlers and get the 400 messages.

class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyRequest(BaseModel):
    token: Optional[str] = None


class ProcessRequest(BaseModel):
    text: Optional[str] = None
    features: Optional[List[str]] = None
