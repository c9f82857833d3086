"""
Ownership Token Codec — one-time secrets that let an anonymous submitter
edit or delete their own comment without an account.

Secret format: 48-char lowercase hex (24 random bytes, 192 bits).
Storage: SHA-256 hex digest of the secret — raw secret never stored.
Verification: recompute + hmac.compare_digest (constant time).

The secret is returned to the submitter exactly once, at creation.
"""

import hashlib
import hmac
import secrets
from typing import NamedTuple, Optional

SECRET_BYTES = 24
SECRET_LENGTH = SECRET_BYTES * 2  # hex chars


class IssuedSecret(NamedTuple):
    secret: str
    digest: str


def digest(secret: str) -> str:
    """SHA-256 hex digest of an ownership secret."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def issue() -> IssuedSecret:
    """Mint a fresh secret and the digest to persist in its place."""
    secret = secrets.token_hex(SECRET_BYTES)
    return IssuedSecret(secret=secret, digest=digest(secret))


def verify(candidate: Optional[str], stored_digest: Optional[str]) -> bool:
    """True iff ``candidate`` hashes to ``stored_digest``.

    Records that predate ownership tokens (no digest) and requests without
    a secret never verify.
    """
    if not stored_digest or not candidate or not isinstance(candidate, str):
        return False
    return hmac.compare_digest(digest(candidate), stored_digest)
