"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The cost factor is fixed per deployment (settings.bcrypt_rounds,
default 10); tests drop it to 4, bcrypt's minimum.
"""

from functools import lru_cache

import bcrypt


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password with bcrypt.

    Passwords are truncated to 72 bytes (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=4)
def dummy_hash(rounds: int = 10) -> str:
    """A throwaway hash used when the account doesn't exist.

    Learn: login always pays for one bcrypt comparison, whether or not the
    email is registered, so response time doesn't reveal which emails exist.
    """
    return hash_password("taskhub-dummy-password", rounds=rounds)
