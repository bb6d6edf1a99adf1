"""
core/security.py
----------------
Password hashing utilities.

Design decisions:
  - PBKDF2-HMAC-SHA1, 15000 rounds, 16-byte derived key. These parameters
    match the hashes already stored in licensing databases, so they cannot
    change without a re-hash migration.
  - The salt is the user's Uid. It is fed to PBKDF2 in the little-endian
    field layout (uuid.bytes_le) that legacy hashes were produced with.
  - A user whose stored hash is NULL authenticates with any password.
    This is legacy behaviour the calling applications depend on and is a
    known security caveat: do not tighten it here.
"""

from typing import Optional
from uuid import UUID

from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq

HASH_DIGEST = "sha1"
HASH_ROUNDS = 15_000
HASH_LENGTH = 16


def hash_password(plain: str, salt: UUID) -> bytes:
    """Return the fixed-length PBKDF2 hash of ``plain`` salted with ``salt``."""
    return pbkdf2_hmac(
        HASH_DIGEST,
        plain.encode("utf-8"),
        salt.bytes_le,
        HASH_ROUNDS,
        HASH_LENGTH,
    )


def verify_password(plain: str, salt: UUID, hashed: bytes) -> bool:
    """Constant-time comparison of plain password against stored hash."""
    return consteq(hash_password(plain, salt), bytes(hashed))


def password_accepted(plain: Optional[str], salt: UUID, hashed: Optional[bytes]) -> bool:
    """
    Authentication rule used by every sign-in path.

    A NULL stored hash accepts any password, including None and "".
    Otherwise the supplied password (None treated as "") must verify.
    """
    if hashed is None:
        return True
    return verify_password(plain or "", salt, hashed)
