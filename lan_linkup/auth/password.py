"""Argon2 password hashing for user accounts."""
from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password must not be empty")
    try:
        return _hasher.hash(password)
    except HashingError as exc:
        raise ValueError("could not hash password") from exc


def verify_password(password: str, password_hash: str) -> bool:
    """False for any mismatch or unreadable hash, never an exception."""
    if not password or not password_hash:
        return False
    try:
        return _hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False
