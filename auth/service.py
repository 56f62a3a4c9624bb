"""
Credential service — registration, login and token handling.

The service is stateless: every call is an independent unit of work
against the shared account store.  Domain failures come back as
``AuthFailure`` values, never as exceptions, and the key derivation runs
on a worker thread so it does not stall the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Optional, Union

from auth.hasher import CredentialHasher
from auth.results import (
    AccountStore,
    AuthFailure,
    AuthOutcome,
    AuthSuccess,
    DuplicateKeyError,
    SigningError,
    StoreUnavailableError,
    TokenInvalid,
    TokenSigner,
)
from auth.schemas import (
    Account,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenClaims,
    UserProfile,
)
from config.settings import CredentialConfig

logger = logging.getLogger(__name__)

_INFRA_ERRORS = (StoreUnavailableError, SigningError)


def validate_token(signer: TokenSigner, token: str) -> Union[TokenClaims, AuthFailure]:
    """
    Check a presented token's signature and expiry.

    A pure function of the token and the signer; the account store is not
    consulted.
    """
    try:
        claims = TokenClaims.model_validate(signer.verify(token))
        uuid.UUID(claims.sub)
    except TokenInvalid as exc:
        return AuthFailure.invalid_credentials(str(exc))
    except ValueError as exc:
        # pydantic's ValidationError, or a ``sub`` that is not an account id
        return AuthFailure.invalid_credentials(f"invalid claims: {exc}")
    return claims


class CredentialService:
    def __init__(
        self,
        store: AccountStore,
        signer: TokenSigner,
        config: CredentialConfig,
        hasher: Optional[CredentialHasher] = None,
    ) -> None:
        self._store = store
        self._signer = signer
        self._config = config
        self._hasher = hasher or CredentialHasher(config.kdf_cost, config.salt_length)

    # ── Entry points ───────────────────────────────────────────────────

    async def register(self, req: RegisterRequest) -> AuthOutcome:
        """Create an account for an unused email and sign the caller in."""
        try:
            if await self._store.find_by_email(req.email) is not None:
                logger.info("Registration refused: email already registered")
                return AuthFailure.duplicate_account()

            account = Account(
                email=req.email,
                name=req.name,
                password=await self._run_kdf(self._hasher.hash_password, req.password),
            )
            try:
                account = await self._store.insert(account)
            except DuplicateKeyError:
                # Lost a race with a concurrent registration for the same email.
                logger.info("Registration refused: email taken during insert")
                return AuthFailure.duplicate_account()

            token = self.issue_token(account)
        except _INFRA_ERRORS as exc:
            logger.error("Registration failed: %s", exc, exc_info=True)
            return AuthFailure.infrastructure(str(exc))

        logger.info("Registered account %s", account.id)
        return AuthSuccess(
            response=AuthResponse(access_token=token, user=account.profile())
        )

    async def login(self, req: LoginRequest) -> AuthOutcome:
        """Check an email / password pair and sign the caller in."""
        try:
            account = await self._store.find_by_email(req.email)
            if account is None:
                # Spend the same derivation time as a real check so the
                # response does not reveal whether the email exists.
                await self._run_kdf(self._hasher.check_password, req.password, "")
                logger.info("Login refused")
                return AuthFailure.invalid_credentials()

            if not await self._run_kdf(
                self._hasher.check_password, req.password, account.password
            ):
                logger.info("Login refused")
                return AuthFailure.invalid_credentials()

            token = self.issue_token(account)
        except _INFRA_ERRORS as exc:
            logger.error("Login failed: %s", exc, exc_info=True)
            return AuthFailure.infrastructure(str(exc))

        logger.info("Login: account %s", account.id)
        return AuthSuccess(
            response=AuthResponse(access_token=token, user=account.profile())
        )

    def issue_token(self, account: Account) -> str:
        claims = {"sub": str(account.id), "email": account.email}
        return self._signer.sign(claims, self._config.token_ttl)

    def validate_token(self, token: str) -> Union[TokenClaims, AuthFailure]:
        return validate_token(self._signer, token)

    async def get_profile(self, account_id: uuid.UUID) -> Union[UserProfile, AuthFailure]:
        """Re-resolve the current profile for an authenticated account."""
        try:
            account = await self._store.find_by_id(account_id)
        except StoreUnavailableError as exc:
            logger.error("Profile lookup failed: %s", exc, exc_info=True)
            return AuthFailure.infrastructure(str(exc))
        if account is None:
            return AuthFailure.invalid_credentials("account no longer exists")
        return account.profile()

    # ── Key derivation off the event loop ─────────────────────────────

    async def _run_kdf(self, fn, *args):
        # Shielded: a derivation that has started always runs to completion.
        return await asyncio.shield(asyncio.to_thread(fn, *args))
