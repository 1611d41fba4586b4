"""Security helpers (hashing and verification)."""

from __future__ import annotations

import secrets

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()
_PREFIX = "argon2$"


def hash_password(password: str) -> str:
    """Create a modern Argon2 hash with a prefix for detection."""
    hashed = _ph.hash(password)
    return f"{_PREFIX}{hashed}"


def is_hashed(stored: str | None) -> bool:
    return bool(stored) and str(stored).startswith(_PREFIX)


def verify_password(password: str, stored: str | None) -> bool:
    """Check a password against an Argon2 hash or a legacy plaintext value."""
    stored = stored or ""
    if not stored:
        return False
    if is_hashed(stored):
        hashed = stored[len(_PREFIX) :]
        try:
            return _ph.verify(hashed, password)
        except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
            return False
    # records written before hashing keep the password as-is
    return secrets.compare_digest(stored.encode("utf-8"), (password or "").encode("utf-8"))
