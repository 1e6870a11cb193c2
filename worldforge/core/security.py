"""Pure functions for password hashing and session id generation.

No classes, no state. Stored hashes use passlib's modular-crypt format
``$pbkdf2-sha256$<rounds>$<salt>$<checksum>`` so verification reads the
scheme, work factor and salt from the string itself and never depends on
current configuration.
"""

import secrets

from passlib.hash import pbkdf2_sha256

from .config import DEFAULT_PASSWORD_HASH_ROUNDS

# 30 random bytes -> 40 url-safe base64 characters.
SESSION_ID_BYTES = 30

_SALT_BYTES = 16


def hash_password(password: str, rounds: int = DEFAULT_PASSWORD_HASH_ROUNDS) -> str:
    """Hash *password* with a fresh random salt.

    Args:
        password: Plaintext password.
        rounds: PBKDF2 iteration count recorded in the output.

    Returns:
        Self-describing hash string.
    """
    return pbkdf2_sha256.using(rounds=rounds, salt_size=_SALT_BYTES).hash(password)


def verify_password(password: str, stored: str) -> bool:
    """Check *password* against a stored hash string.

    Returns ``False`` on any malformed, truncated or foreign-scheme input
    rather than raising, and never reports which check failed. The digest
    comparison is constant-time.
    """
    if not isinstance(password, str) or not isinstance(stored, str):
        return False
    try:
        if not pbkdf2_sha256.identify(stored):
            return False
        return pbkdf2_sha256.verify(password, stored)
    except (ValueError, TypeError):
        return False


def new_session_id() -> str:
    """Opaque, high-entropy, url-safe session token of fixed length."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


_dummy_hashes: dict[int, str] = {}


def dummy_verify(password: object, rounds: int = DEFAULT_PASSWORD_HASH_ROUNDS) -> bool:
    """Run a full verification against a throwaway hash and return ``False``.

    Used when there is no account to check, so a login for an unknown user
    costs the same as one with a wrong password.
    """
    stored = _dummy_hashes.get(rounds)
    if stored is None:
        stored = _dummy_hashes.setdefault(rounds, hash_password(secrets.token_urlsafe(16), rounds=rounds))
    verify_password(password if isinstance(password, str) else "", stored)
    return False
