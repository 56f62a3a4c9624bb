"""
Pydantic records for the account service.

Request models carry the field-level validation that runs before the
credential service is invoked; response models are the only shapes that
leave the service, so the stored password secret has no way out.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(BaseModel):
    """The persisted identity record, independent of the ORM."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    email: str
    name: str
    password: str  # "<saltHex>:<derivedSecretHex>", never the plaintext
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = {"from_attributes": True}

    def profile(self) -> "UserProfile":
        return UserProfile(id=str(self.id), email=self.email, name=self.name)


# ── Request / response schemas ─────────────────────────────────────────


class _EmailRequest(BaseModel):
    email: str = Field(..., max_length=255)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        # Emails are matched exactly as stored, so validate without
        # rewriting the address.
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(str(exc)) from exc
        return value


class RegisterRequest(_EmailRequest):
    name: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(_EmailRequest):
    password: str = Field(..., min_length=1, max_length=128)


class UserProfile(BaseModel):
    id: str
    email: str
    name: str


class AuthResponse(BaseModel):
    access_token: str
    user: UserProfile


class TokenClaims(BaseModel):
    sub: str
    email: str
    exp: Optional[int] = None
    iat: Optional[int] = None

    @property
    def account_id(self) -> uuid.UUID:
        return uuid.UUID(self.sub)
