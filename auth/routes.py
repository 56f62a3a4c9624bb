"""
Auth API routes — register, login, profile.

Route prefix: /auth
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from auth.dependencies import get_credential_service, get_current_claims
from auth.results import AuthFailure, AuthOutcome, FailureKind
from auth.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenClaims,
    UserProfile,
)
from auth.service import CredentialService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

_STATUS_BY_KIND = {
    FailureKind.DUPLICATE_ACCOUNT: status.HTTP_409_CONFLICT,
    FailureKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    FailureKind.INFRASTRUCTURE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _raise_for(failure: AuthFailure) -> None:
    headers = None
    if failure.kind is FailureKind.INVALID_CREDENTIALS:
        headers = {"WWW-Authenticate": "Bearer"}
    raise HTTPException(
        status_code=_STATUS_BY_KIND[failure.kind],
        detail=failure.message,
        headers=headers,
    )


def _unwrap(outcome: AuthOutcome) -> AuthResponse:
    if isinstance(outcome, AuthFailure):
        _raise_for(outcome)
    return outcome.response


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    req: RegisterRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AuthResponse:
    """Register a new user and return an access token."""
    return _unwrap(await service.register(req))


@router.post("/login", response_model=AuthResponse)
async def login(
    req: LoginRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AuthResponse:
    """Login with email + password."""
    return _unwrap(await service.login(req))


@router.get("/profile", response_model=UserProfile)
async def profile(
    claims: TokenClaims = Depends(get_current_claims),
    service: CredentialService = Depends(get_credential_service),
) -> UserProfile:
    """Return the profile of the authenticated user."""
    result = await service.get_profile(claims.account_id)
    if isinstance(result, AuthFailure):
        logger.info("Profile refused for %s: %s", claims.sub, result.detail)
        _raise_for(result)
    return result
