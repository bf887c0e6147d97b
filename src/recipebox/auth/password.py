"""
Password hashing using argon2id.

Argon2id is the winner of the Password Hashing Competition and is resistant
to both GPU-based and side-channel attacks.
"""

from __future__ import annotations

import argon2

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,  # 64 MB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,  # argon2id
)

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128


class PasswordValidationError(ValueError):
    """Raised when a password is rejected at registration."""


def hash_password(password: str) -> str:
    """Hash a password using argon2id. Returns the full hash string."""
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its argon2id hash.

    Returns True if the password matches. Never raises on mismatch.
    """
    try:
        return _hasher.verify(password_hash, password)
    except argon2.exceptions.VerifyMismatchError:
        return False
    except argon2.exceptions.InvalidHashError:
        return False


def validate_new_password(password: str, password_confirm: str) -> None:
    """
    Check a password chosen at registration.

    Raises PasswordValidationError if the confirmation does not match or the
    length is outside 6..128 characters.
    """
    if password != password_confirm:
        msg = "Passwords do not match"
        raise PasswordValidationError(msg)
    if not password or not password.strip():
        msg = "Password cannot be empty"
        raise PasswordValidationError(msg)
    if len(password) < MIN_PASSWORD_LENGTH:
        msg = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        raise PasswordValidationError(msg)
    if len(password) > MAX_PASSWORD_LENGTH:
        msg = f"Password must not exceed {MAX_PASSWORD_LENGTH} characters"
        raise PasswordValidationError(msg)
