"""Salted, deliberately slow password hashing backed by bcrypt."""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Produce and check bcrypt digests.

    The salt is generated per call and embedded in the digest, so hashing the
    same plaintext twice yields two different digests that both verify.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, plaintext: str) -> str:
        """Return the bcrypt digest for ``plaintext``.

        Raises
        ------
        ValueError
            If the encoded password exceeds bcrypt's 72 byte input limit.
        """
        encoded = plaintext.encode("utf-8")
        if len(encoded) > 72:
            raise ValueError("password exceeds 72 bytes")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return ``True`` only when ``plaintext`` matches ``digest``.

        A malformed or truncated digest is reported as a mismatch.
        """
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False
