"""
Tests for CredentialService — registration, login, tokens and profiles.
"""

import asyncio
import re
import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from auth.results import (
    AuthFailure,
    AuthSuccess,
    DuplicateKeyError,
    FailureKind,
    SigningError,
    StoreUnavailableError,
)
from auth.schemas import LoginRequest, RegisterRequest, TokenClaims, UserProfile
from auth.service import CredentialService, validate_token
from auth.tokens import JwtTokenSigner

ADA = RegisterRequest(name="Ada", email="ada@example.com", password="Lovelace1")


class TestRegister:
    @pytest.mark.asyncio
    async def test_ada_scenario(self, service):
        first = await service.register(ADA)
        assert isinstance(first, AuthSuccess)
        assert first.response.user.email == "ada@example.com"
        assert first.response.user.name == "Ada"

        again = await service.register(ADA)
        assert isinstance(again, AuthFailure)
        assert again.kind is FailureKind.DUPLICATE_ACCOUNT

        wrong = await service.login(LoginRequest(email="ada@example.com", password="wrong"))
        assert isinstance(wrong, AuthFailure)
        assert wrong.kind is FailureKind.INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_duplicate_leaves_single_account(self, service, store):
        await service.register(ADA)
        await service.register(
            RegisterRequest(name="Impostor", email="ada@example.com", password="Other123")
        )
        assert len(store.accounts) == 1
        (account,) = store.accounts.values()
        assert account.name == "Ada"

    @pytest.mark.asyncio
    async def test_stored_secret_shape_and_no_plaintext(self, service, store):
        await service.register(ADA)
        (account,) = store.accounts.values()
        assert re.fullmatch(r"[0-9a-f]{32}:[0-9a-f]{128}", account.password)
        assert "Lovelace1" not in account.password

    @pytest.mark.asyncio
    async def test_response_never_contains_secret(self, service, store):
        outcome = await service.register(ADA)
        (account,) = store.accounts.values()
        dumped = outcome.response.model_dump_json()
        assert account.password not in dumped
        assert set(outcome.response.user.model_dump()) == {"id", "email", "name"}

    @pytest.mark.asyncio
    async def test_lost_insert_race_is_duplicate(self, signer, credential_config, hasher):
        store = MagicMock()
        store.find_by_email = AsyncMock(return_value=None)
        store.insert = AsyncMock(side_effect=DuplicateKeyError("taken"))
        service = CredentialService(store, signer, credential_config, hasher)

        outcome = await service.register(ADA)

        assert isinstance(outcome, AuthFailure)
        assert outcome.kind is FailureKind.DUPLICATE_ACCOUNT

    @pytest.mark.asyncio
    async def test_concurrent_registrations_one_wins(self, service, store):
        results = await asyncio.gather(service.register(ADA), service.register(ADA))
        kinds = sorted(type(r).__name__ for r in results)
        assert kinds == ["AuthFailure", "AuthSuccess"]
        failure = next(r for r in results if isinstance(r, AuthFailure))
        assert failure.kind is FailureKind.DUPLICATE_ACCOUNT
        assert len(store.accounts) == 1

    @pytest.mark.asyncio
    async def test_store_outage_is_infrastructure_failure(self, signer, credential_config, hasher):
        store = MagicMock()
        store.find_by_email = AsyncMock(side_effect=StoreUnavailableError("db down"))
        service = CredentialService(store, signer, credential_config, hasher)

        outcome = await service.register(ADA)

        assert outcome.kind is FailureKind.INFRASTRUCTURE_FAILURE

    @pytest.mark.asyncio
    async def test_signer_outage_is_infrastructure_failure(self, store, credential_config, hasher):
        signer = MagicMock()
        signer.sign.side_effect = SigningError("no key")
        service = CredentialService(store, signer, credential_config, hasher)

        outcome = await service.register(ADA)

        assert outcome.kind is FailureKind.INFRASTRUCTURE_FAILURE


class TestLogin:
    @pytest.mark.asyncio
    async def test_round_trip(self, service):
        req = RegisterRequest(name="Grace", email="grace@example.com", password="Secret123!")
        registered = await service.register(req)

        outcome = await service.login(LoginRequest(email=req.email, password="Secret123!"))

        assert isinstance(outcome, AuthSuccess)
        assert outcome.response.user.email == "grace@example.com"
        assert outcome.response.user.name == "Grace"
        assert outcome.response.user.id == registered.response.user.id

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_are_indistinguishable(self, service):
        await service.register(ADA)

        wrong_password = await service.login(
            LoginRequest(email="ada@example.com", password="wrong")
        )
        unknown_email = await service.login(
            LoginRequest(email="nobody@example.com", password="Lovelace1")
        )

        assert wrong_password == unknown_email
        assert wrong_password.kind is FailureKind.INVALID_CREDENTIALS
        assert wrong_password.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_email_still_runs_derivation(self, service, hasher):
        hasher.verify = MagicMock(return_value=False)
        await service.login(LoginRequest(email="nobody@example.com", password="x"))
        hasher.verify.assert_called_once()

    @pytest.mark.asyncio
    async def test_login_does_not_change_accounts(self, service, store):
        await service.register(ADA)
        before = dict(store.accounts)
        await service.login(LoginRequest(email=ADA.email, password=ADA.password))
        assert store.accounts == before

    @pytest.mark.asyncio
    async def test_store_outage_is_not_invalid_credentials(self, signer, credential_config, hasher):
        store = MagicMock()
        store.find_by_email = AsyncMock(side_effect=StoreUnavailableError("timeout"))
        service = CredentialService(store, signer, credential_config, hasher)

        outcome = await service.login(LoginRequest(email=ADA.email, password=ADA.password))

        assert outcome.kind is FailureKind.INFRASTRUCTURE_FAILURE


class TestTokens:
    @pytest.mark.asyncio
    async def test_issued_tokens_validate(self, service):
        registered = await service.register(ADA)
        logged_in = await service.login(LoginRequest(email=ADA.email, password=ADA.password))

        for outcome in (registered, logged_in):
            claims = service.validate_token(outcome.response.access_token)
            assert isinstance(claims, TokenClaims)
            assert claims.sub == outcome.response.user.id
            assert claims.email == ADA.email

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, store, signer, hasher, config_factory):
        service = CredentialService(
            store, signer, config_factory(ttl=timedelta(seconds=-1)), hasher
        )
        outcome = await service.register(ADA)

        result = service.validate_token(outcome.response.access_token)

        assert isinstance(result, AuthFailure)
        assert result.kind is FailureKind.INVALID_CREDENTIALS
        assert "expired" in result.detail

    @pytest.mark.asyncio
    async def test_default_ttl_is_one_day(self, service, signer):
        outcome = await service.register(ADA)
        claims = signer.verify(outcome.response.access_token)
        assert claims["exp"] - claims["iat"] == 86400

    def test_validation_needs_no_store(self, signer):
        token = signer.sign({"sub": str(uuid.uuid4()), "email": "a@b.co"}, timedelta(hours=1))
        assert isinstance(validate_token(signer, token), TokenClaims)

    def test_foreign_signature_rejected(self, signer):
        token = JwtTokenSigner("other").sign(
            {"sub": str(uuid.uuid4()), "email": "a@b.co"}, timedelta(hours=1)
        )
        assert isinstance(validate_token(signer, token), AuthFailure)

    def test_non_uuid_subject_rejected(self, signer):
        token = signer.sign({"sub": "42", "email": "a@b.co"}, timedelta(hours=1))
        result = validate_token(signer, token)
        assert isinstance(result, AuthFailure)
        assert result.kind is FailureKind.INVALID_CREDENTIALS


class TestProfile:
    @pytest.mark.asyncio
    async def test_profile_of_registered_account(self, service):
        outcome = await service.register(ADA)
        profile = await service.get_profile(uuid.UUID(outcome.response.user.id))
        assert profile == UserProfile(id=outcome.response.user.id, email=ADA.email, name="Ada")

    @pytest.mark.asyncio
    async def test_profile_of_missing_account(self, service):
        result = await service.get_profile(uuid.uuid4())
        assert isinstance(result, AuthFailure)
        assert result.kind is FailureKind.INVALID_CREDENTIALS
