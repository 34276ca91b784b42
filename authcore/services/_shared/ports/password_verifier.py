from __future__ import annotations

import hmac
from typing import Protocol


class PasswordVerifier(Protocol):
    """Port for password hashing; the algorithm is the adapter's choice."""

    def hash(self, password: str) -> str:
        """Return an opaque hash for ``password``."""
        ...

    def compare(self, password_hash: str, password: str) -> bool:
        """Return ``True`` when ``password`` matches ``password_hash``."""
        ...


class StubPasswordVerifier(PasswordVerifier):
    """
    Deterministic verifier for tests: ``hash("pw") == "hashed_pw"``.
    """

    PREFIX = "hashed_"

    def hash(self, password: str) -> str:
        return f"{self.PREFIX}{password}"

    def compare(self, password_hash: str, password: str) -> bool:
        return hmac.compare_digest(password_hash, self.hash(password))
