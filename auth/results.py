"""
Outcome types, error taxonomy and collaborator contracts for the
credential service.

Service entry points never raise for domain failures.  They return either
an ``AuthSuccess`` / value or an ``AuthFailure`` tagged with a
``FailureKind`` so callers can branch on the kind instead of catching
exceptions or matching on messages.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Union

from pydantic import BaseModel

from auth.schemas import Account, AuthResponse


class FailureKind(str, Enum):
    DUPLICATE_ACCOUNT = "duplicate_account"
    INVALID_CREDENTIALS = "invalid_credentials"
    INFRASTRUCTURE_FAILURE = "infrastructure_failure"


class AuthFailure(BaseModel):
    kind: FailureKind
    message: str
    detail: Optional[str] = None

    model_config = {"frozen": True}

    @classmethod
    def duplicate_account(cls) -> "AuthFailure":
        return cls(kind=FailureKind.DUPLICATE_ACCOUNT, message="User already exists")

    @classmethod
    def invalid_credentials(cls, detail: Optional[str] = None) -> "AuthFailure":
        # Same message for every cause; ``detail`` is for logs only.
        return cls(
            kind=FailureKind.INVALID_CREDENTIALS,
            message="Invalid credentials",
            detail=detail,
        )

    @classmethod
    def infrastructure(cls, detail: Optional[str] = None) -> "AuthFailure":
        return cls(
            kind=FailureKind.INFRASTRUCTURE_FAILURE,
            message="Service temporarily unavailable",
            detail=detail,
        )


class AuthSuccess(BaseModel):
    response: AuthResponse

    model_config = {"frozen": True}


AuthOutcome = Union[AuthSuccess, AuthFailure]


# ── Collaborator exceptions ────────────────────────────────────────────


class AccountServiceError(Exception):
    """Base class for errors raised by the service's collaborators."""


class DuplicateKeyError(AccountServiceError):
    """The store refused an insert because the email is already taken."""


class StoreUnavailableError(AccountServiceError):
    """The account store could not be reached or failed mid-operation."""


class SigningError(AccountServiceError):
    """The token signer could not produce a token."""


class TokenInvalid(AccountServiceError):
    """Token is malformed, tampered with or signed with another key."""


class TokenExpired(TokenInvalid):
    """Token signature is valid but its ``exp`` claim has passed."""


# ── Collaborator contracts ─────────────────────────────────────────────


class AccountStore(Protocol):
    async def find_by_email(self, email: str) -> Optional[Account]: ...

    async def find_by_id(self, account_id: uuid.UUID) -> Optional[Account]: ...

    async def insert(self, account: Account) -> Account: ...


class TokenSigner(Protocol):
    def sign(self, claims: Dict[str, Any], ttl: timedelta) -> str: ...

    def verify(self, token: str) -> Dict[str, Any]: ...
