from __future__ import annotations

from datetime import datetime
from typing import Protocol

from authcore.services.auth.dto import ClientMetadata


class RevocationStore(Protocol):
    """
    Capability interface for tracking revoked bearer tokens.

    Two strategies implement it: a process-local map keyed by the raw token
    and a persistent store keyed by the token's SHA-256 digest.
    """

    def add(self, token: str, expires_at: datetime, *, user_id: int | None = None) -> None:
        """Mark ``token`` revoked until ``expires_at``. Idempotent."""
        ...

    def is_revoked(self, token: str) -> bool:
        """Return ``True`` when ``token`` has been revoked."""
        ...

    def register_refresh_token(
        self,
        user_id: int,
        token: str,
        expires_at: datetime,
        client: ClientMetadata | None = None,
    ) -> None:
        """Record a freshly issued refresh token so it can be bulk-revoked later."""
        ...

    def revoke_all_for_user(self, user_id: int) -> int:
        """
        Revoke every registered, still valid token of ``user_id``.

        :returns: Number of tokens newly revoked.
        """
        ...

    def sweep(self, now: datetime | None = None) -> int:
        """
        Drop entries whose ``expires_at`` is in the past.

        :returns: Number of entries removed.
        """
        ...
