"""Salted password hashing with a memory-hard KDF.

Credentials are stored as "<hex derived key>.<hex salt>". A string without the
delimiter is a legacy plaintext credential from bootstrap data.
"""

import hmac
import secrets

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw
from pydantic import BaseModel, Field

from coursehub.errors import ResourceExhaustionError

DELIMITER = "."
SALT_BYTES = 16
MIN_SALT_BYTES = 8  # argon2 rejects shorter salts
MIN_KEY_BYTES = 4  # argon2 rejects shorter outputs


class KdfParams(BaseModel, frozen=True):
    """Argon2id cost parameters."""

    time_cost: int = Field(2, ge=1)
    memory_cost: int = Field(19 * 1024, ge=8, description="KiB")
    parallelism: int = Field(1, ge=1)
    hash_len: int = Field(64, ge=MIN_KEY_BYTES)


def _encode(value: str) -> bytes:
    return value.encode("utf-8", "surrogatepass")


def derive_key(plaintext: str, salt: bytes, params: KdfParams, hash_len: int | None = None) -> bytes:
    try:
        return hash_secret_raw(
            secret=_encode(plaintext),
            salt=salt,
            time_cost=params.time_cost,
            memory_cost=params.memory_cost,
            parallelism=params.parallelism,
            hash_len=hash_len or params.hash_len,
            type=Type.ID,
        )
    except (HashingError, MemoryError) as e:
        raise ResourceExhaustionError("Password key derivation failed") from e


def hash_password(plaintext: str, params: KdfParams) -> str:
    """Hash a password with a fresh random salt."""
    salt = secrets.token_bytes(SALT_BYTES)
    key = derive_key(plaintext, salt, params)
    return f"{key.hex()}{DELIMITER}{salt.hex()}"


def is_legacy_credential(credential: str) -> bool:
    return DELIMITER not in credential


def verify_password(plaintext: str, credential: str, params: KdfParams, allow_legacy: bool = True) -> bool:
    """Check a password against a stored credential in constant time.

    Malformed credentials verify as False. KDF failures raise ResourceExhaustionError.
    """
    if is_legacy_credential(credential):
        if not allow_legacy:
            return False
        return hmac.compare_digest(_encode(plaintext), _encode(credential))

    parts = credential.split(DELIMITER)
    if len(parts) != 2:
        return False
    try:
        stored_key = bytes.fromhex(parts[0])
        salt = bytes.fromhex(parts[1])
    except ValueError:
        return False
    if len(stored_key) < MIN_KEY_BYTES or len(salt) < MIN_SALT_BYTES:
        return False

    derived = derive_key(plaintext, salt, params, hash_len=len(stored_key))
    return hmac.compare_digest(derived, stored_key)
