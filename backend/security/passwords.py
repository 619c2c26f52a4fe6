"""
Password hashing with bcrypt.

Hashes are salted per call (``bcrypt.gensalt``) and compared with
``bcrypt.checkpw``, which is constant-time with respect to the stored hash.
"""

from functools import lru_cache

import bcrypt

# bcrypt only consumes the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    # Stored as a UTF-8 string like: "$2b$12$..."
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password
        return False


@lru_cache(maxsize=None)
def dummy_hash(rounds: int = 12) -> str:
    """Hash compared against when the email is unknown, to keep login timing flat."""
    return hash_password("not-a-real-password", rounds=rounds)
