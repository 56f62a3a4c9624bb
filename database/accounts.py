"""
Account store backed by the ``users`` table.

Translates database errors into the store contract: a unique-constraint
violation on insert becomes ``DuplicateKeyError`` and every other database
or connection fault becomes ``StoreUnavailableError``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.results import DuplicateKeyError, StoreUnavailableError
from auth.schemas import Account
from database.models import User

logger = logging.getLogger(__name__)

# Driver-level connection faults (refused, reset, timed out) can reach us
# without being wrapped in an SQLAlchemy exception.
_STORE_FAULTS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class SqlAccountStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> Optional[Account]:
        return await self._find_one(select(User).where(User.email == email))

    async def find_by_id(self, account_id: uuid.UUID) -> Optional[Account]:
        return await self._find_one(select(User).where(User.id == account_id))

    async def insert(self, account: Account) -> Account:
        """Persist ``account`` and commit; the email must not exist yet."""
        user = User(
            id=account.id,
            email=account.email,
            name=account.name,
            password=account.password,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )
        self._session.add(user)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise DuplicateKeyError("email already registered") from exc
        except _STORE_FAULTS as exc:
            await self._session.rollback()
            raise StoreUnavailableError(f"insert failed: {exc}") from exc
        logger.debug("Inserted user %s", account.id)
        return Account.model_validate(user)

    async def _find_one(self, stmt) -> Optional[Account]:
        try:
            result = await self._session.execute(stmt)
        except _STORE_FAULTS as exc:
            raise StoreUnavailableError(f"lookup failed: {exc}") from exc
        user = result.scalar_one_or_none()
        return Account.model_validate(user) if user is not None else None
