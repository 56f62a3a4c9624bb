"""
FastAPI dependencies for authentication.

Provides ``db_session``, ``get_credential_service`` and
``get_current_claims``, which the auth routes use to reach the account
store and to guard the profile endpoint.
"""

from __future__ import annotations

from functools import lru_cache
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auth.hasher import CredentialHasher
from auth.results import AuthFailure, TokenSigner
from auth.schemas import TokenClaims
from auth.service import CredentialService, validate_token
from auth.tokens import JwtTokenSigner
from config.settings import CredentialConfig, config
from database.accounts import SqlAccountStore
from database.session import get_db_session

_bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_credential_config() -> CredentialConfig:
    return config.credential_config()


@lru_cache
def get_token_signer() -> TokenSigner:
    cfg = get_credential_config()
    return JwtTokenSigner(cfg.signing_key, cfg.signing_algorithm)


@lru_cache
def get_hasher() -> CredentialHasher:
    cfg = get_credential_config()
    return CredentialHasher(cfg.kdf_cost, cfg.salt_length)


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


async def get_credential_service(
    session: AsyncSession = Depends(db_session),
    signer: TokenSigner = Depends(get_token_signer),
    hasher: CredentialHasher = Depends(get_hasher),
) -> CredentialService:
    """A service bound to this request's account store."""
    return CredentialService(
        store=SqlAccountStore(session),
        signer=signer,
        config=get_credential_config(),
        hasher=hasher,
    )


def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    signer: TokenSigner = Depends(get_token_signer),
) -> TokenClaims:
    """
    Verify the Bearer token and return its claims.

    A missing, malformed, tampered or expired token is a 401.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    claims = validate_token(signer, credentials.credentials)
    if isinstance(claims, AuthFailure):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims
