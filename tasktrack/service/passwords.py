from __future__ import annotations

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from tasktrack.logging import get_logger

logger = get_logger(__name__)


class CredentialHasher:
    """argon2id password hashing with a configurable work factor.

    Every ``hash`` call draws a fresh salt, so hashing the same password twice
    yields two different digests that both verify.
    """

    algorithm = "argon2id"

    def __init__(
        self,
        *,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ) -> None:
        self._pwd_hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID,
        )

    def hash(self, password: str) -> str:
        return self._pwd_hasher.hash(password)

    def verify(self, password: str, digest: str) -> bool:
        if not digest:
            return False
        try:
            return self._pwd_hasher.verify(digest, password)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError):
            logger.warning("password_digest_unusable", algorithm=self.algorithm)
            return False

    def needs_rehash(self, digest: str) -> bool:
        try:
            return self._pwd_hasher.check_needs_rehash(digest)
        except InvalidHashError:
            return True
