"""
Access-token signing and verification.

Tokens are HS256 JWTs carrying ``sub`` (account id), ``email``, ``iat``
and ``exp``.  The signing key is handed in at construction; this module
never reads configuration itself.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from auth.results import SigningError, TokenExpired, TokenInvalid

_REQUIRED_CLAIMS = ["exp", "sub", "email"]


class JwtTokenSigner:
    """Shared-secret token signer backed by PyJWT."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        if not secret:
            raise ValueError("a signing secret is required")
        self._secret = secret
        self._algorithm = algorithm

    def sign(self, claims: Dict[str, Any], ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + ttl}
        try:
            return jwt.encode(payload, self._secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, NotImplementedError) as exc:
            raise SigningError(f"could not sign token: {exc}") from exc

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Return the token's claims.

        Raises ``TokenExpired`` once ``exp`` has passed and ``TokenInvalid``
        for anything else that is wrong with the token.
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired("token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"invalid token: {exc}") from exc
