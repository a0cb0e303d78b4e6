from __future__ import annotations

import hmac

from passlib.context import CryptContext


pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)


def hash_credential(credential: str) -> str:
    """Store an argon2 hash of the participant's credential, never the credential itself."""
    return pwd_context.hash(credential)


def verify_credential(credential: str, stored_hash: str) -> bool:
    if not credential or not stored_hash:
        return False
    return pwd_context.verify(credential, stored_hash)


def secrets_match(provided: str | None, expected: str | None) -> bool:
    """Constant-time comparison; an unset expected secret never matches."""
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
