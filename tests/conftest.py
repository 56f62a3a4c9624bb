"""
Shared fixtures: a cheap KDF configuration and an in-memory account store.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Dict, Optional

import pytest

from auth.hasher import CredentialHasher
from auth.results import DuplicateKeyError
from auth.schemas import Account
from auth.service import CredentialService
from auth.tokens import JwtTokenSigner
from config.settings import CredentialConfig, KdfCost

TEST_SECRET = "test-signing-secret"


class InMemoryAccountStore:
    """Dict-backed store with the same insert-if-absent contract as the DB."""

    def __init__(self) -> None:
        self.accounts: Dict[uuid.UUID, Account] = {}

    async def find_by_email(self, email: str) -> Optional[Account]:
        for account in self.accounts.values():
            if account.email == email:
                return account
        return None

    async def find_by_id(self, account_id: uuid.UUID) -> Optional[Account]:
        return self.accounts.get(account_id)

    async def insert(self, account: Account) -> Account:
        if await self.find_by_email(account.email) is not None:
            raise DuplicateKeyError("email already registered")
        self.accounts[account.id] = account
        return account


def make_config(ttl: timedelta = timedelta(days=1)) -> CredentialConfig:
    return CredentialConfig(
        kdf_cost=KdfCost(n=16, r=8, p=1),
        salt_length=16,
        token_ttl=ttl,
        signing_key=TEST_SECRET,
    )


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def credential_config() -> CredentialConfig:
    return make_config()


@pytest.fixture
def hasher(credential_config) -> CredentialHasher:
    return CredentialHasher(credential_config.kdf_cost, credential_config.salt_length)


@pytest.fixture
def signer() -> JwtTokenSigner:
    return JwtTokenSigner(TEST_SECRET)


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def service(store, signer, credential_config, hasher) -> CredentialService:
    return CredentialService(store, signer, credential_config, hasher)
