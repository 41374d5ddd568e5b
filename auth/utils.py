"""
Utility functions for the auth module.
"""

import hashlib
import hmac


def hash_password(password: str) -> str:
    """
    Return a SHA256 hash of the given password.

    Note:
        Lets LINKSTATS_PASSWORD hold either the plain password or its SHA256 hex digest.
        In production, use a strong hashing library such as passlib[bcrypt].
    """
    return hashlib.sha256(password.encode()).hexdigest()


def password_matches(stored: str, candidate: str) -> bool:
    """Constant-time check of `candidate` against a plain or SHA256-hashed `stored` password."""
    if not stored or not candidate:
        return False
    stored_b = stored.encode()
    return hmac.compare_digest(stored_b, candidate.encode()) or hmac.compare_digest(
        stored_b, hash_password(candidate).encode()
    )
