"""
Password hashing and verification.

Uses scrypt (``hashlib.scrypt``) with a random per-account salt.  Stored
secrets have the shape ``"<saltHex>:<derivedSecretHex>"``; the hex salt
string itself is the scrypt salt input, which keeps secrets written by
earlier deployments verifiable.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Tuple

from config.settings import KdfCost

SECRET_DELIMITER = ":"
MIN_SALT_LENGTH = 16

# hashlib.scrypt rejects a maxmem above INT_MAX.
_MAXMEM_LIMIT = 2**31 - 1
_MAXMEM_FLOOR = 32 * 1024 * 1024


def encode_secret(salt: str, derived: bytes) -> str:
    return f"{salt}{SECRET_DELIMITER}{derived.hex()}"


def scrypt_maxmem(cost: KdfCost) -> int:
    """Memory ceiling for one derivation: ~128 * r * n bytes, with headroom."""
    return min(_MAXMEM_LIMIT, max(_MAXMEM_FLOOR, 256 * cost.n * cost.r * cost.p))


def split_secret(secret: str) -> Tuple[str, str]:
    """Split a stored secret into ``(salt, derivedHex)``; missing parts are empty."""
    salt, _, derived_hex = secret.partition(SECRET_DELIMITER)
    return salt, derived_hex


class CredentialHasher:
    """
    One-way password transform with constant-time verification.

    The cost parameters are fixed at construction; nothing a client sends
    can change them.
    """

    def __init__(self, cost: KdfCost = KdfCost(), salt_length: int = MIN_SALT_LENGTH) -> None:
        if salt_length < MIN_SALT_LENGTH:
            raise ValueError(f"salt_length must be >= {MIN_SALT_LENGTH} bytes")
        self._cost = cost
        self._salt_length = salt_length
        self._maxmem = scrypt_maxmem(cost)

    def new_salt(self) -> str:
        return secrets.token_hex(self._salt_length)

    def derive(self, password: str, salt: str) -> bytes:
        return hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt.encode("utf-8"),
            n=self._cost.n,
            r=self._cost.r,
            p=self._cost.p,
            maxmem=self._maxmem,
            dklen=self._cost.dklen,
        )

    def verify(self, password: str, salt: str, expected_hex: str) -> bool:
        """
        Recompute the derivation and compare it to ``expected_hex`` in
        constant time.

        Undecodable or wrong-length expected values still go through the
        full derivation and a full-length comparison before returning
        ``False``.
        """
        derived = self.derive(password, salt)
        try:
            expected = bytes.fromhex(expected_hex)
        except ValueError:
            expected = b""
        same_length = len(expected) == len(derived)
        normalised = expected[: len(derived)].ljust(len(derived), b"\x00")
        matches = hmac.compare_digest(derived, normalised)
        return matches & same_length

    def hash_password(self, password: str) -> str:
        """Fresh salt + derivation, encoded for storage."""
        salt = self.new_salt()
        return encode_secret(salt, self.derive(password, salt))

    def check_password(self, password: str, secret: str) -> bool:
        salt, expected_hex = split_secret(secret)
        return self.verify(password, salt, expected_hex)
