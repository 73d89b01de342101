"""
Password hashing port.

Two variants:
- BcryptHasher: the strong hasher, used whenever bcrypt can be imported.
- UnavailableHasher: stands in when bcrypt is missing; it refuses to hash or
  compare and callers branch on `hasher.strong`.

The variant is picked once at startup by `detect_hasher()`. Digests written
without a strong hasher carry the PLAIN_PREFIX so they are never mistaken for
bcrypt output.
"""

import hmac
import logging

# bcrypt is optional - the credential store degrades when it is missing
try:
    import bcrypt  # pyright: ignore[reportMissingImports]
    BCRYPT_AVAILABLE = True
except ImportError:
    bcrypt = None  # type: ignore
    BCRYPT_AVAILABLE = False

from .errors import CapabilityUnavailable


logger = logging.getLogger(__name__)

PLAIN_PREFIX = "PLAIN:"


class PasswordHasher:
    """Interface for the hashing capability."""

    strong = False
    name = "none"

    def hash(self, password: str) -> str:
        raise NotImplementedError

    def verify(self, password: str, digest: str) -> bool:
        raise NotImplementedError


class BcryptHasher(PasswordHasher):
    strong = True
    name = "bcrypt"

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, password: str, digest: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), digest.encode("utf-8"))


class UnavailableHasher(PasswordHasher):
    def hash(self, password: str) -> str:
        raise CapabilityUnavailable("bcrypt is not installed")

    def verify(self, password: str, digest: str) -> bool:
        raise CapabilityUnavailable("bcrypt is not installed")


def plain_digest(password: str) -> str:
    """Tagged plain-text digest, only ever written when no strong hasher exists."""
    return PLAIN_PREFIX + password


def is_plain_digest(digest: str) -> bool:
    return digest.startswith(PLAIN_PREFIX)


def verify_plain(password: str, digest: str) -> bool:
    return hmac.compare_digest(password.encode("utf-8"), digest[len(PLAIN_PREFIX):].encode("utf-8"))


def detect_hasher(rounds: int = 10) -> PasswordHasher:
    """Pick the hashing variant for this process."""
    if BCRYPT_AVAILABLE:
        logger.info(f"[hashing] bcrypt available (rounds={rounds})")
        return BcryptHasher(rounds=rounds)
    logger.warning("[hashing] bcrypt not available, admin passwords cannot be hashed")
    return UnavailableHasher()
