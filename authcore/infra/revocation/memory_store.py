# authcore/infra/revocation/memory_store.py
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from authcore.services._shared.ports.revocation_store import RevocationStore
from authcore.services.auth.dto import ClientMetadata

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MemoryRevocationStore(RevocationStore):
    """
    Process-local revocation map keyed by the raw token string.

    One lock guards every operation, the sweep included, so a write is
    visible to the next read on any thread. Entries vanish on restart.

    :param clock: Returns the current UTC instant (used by :meth:`sweep`).
    :param sweep_batch_size: Maximum deletions per lock acquisition while sweeping.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] | None = None,
        sweep_batch_size: int = 500,
    ) -> None:
        if sweep_batch_size <= 0:
            raise ValueError("sweep_batch_size must be positive")
        self._revoked: dict[str, datetime] = {}
        self._refresh_by_user: dict[int, dict[str, datetime]] = {}
        self._lock = threading.Lock()
        self._clock = clock or _utcnow
        self._batch = sweep_batch_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._revoked)

    # ------------------------------------------------------------------ #
    # RevocationStore
    # ------------------------------------------------------------------ #

    def add(self, token: str, expires_at: datetime, *, user_id: int | None = None) -> None:
        with self._lock:
            self._revoked[token] = expires_at
            if user_id is not None:
                self._refresh_by_user.get(user_id, {}).pop(token, None)

    def is_revoked(self, token: str) -> bool:
        with self._lock:
            return token in self._revoked

    def register_refresh_token(
        self,
        user_id: int,
        token: str,
        expires_at: datetime,
        client: ClientMetadata | None = None,
    ) -> None:
        with self._lock:
            self._refresh_by_user.setdefault(user_id, {})[token] = expires_at

    def revoke_all_for_user(self, user_id: int) -> int:
        with self._lock:
            tokens = self._refresh_by_user.pop(user_id, {})
            count = 0
            for token, expires_at in tokens.items():
                if token not in self._revoked:
                    self._revoked[token] = expires_at
                    count += 1
        logger.info("revoked all refresh tokens", extra={"user_id": user_id, "removed": count})
        return count

    def sweep(self, now: datetime | None = None) -> int:
        """
        Remove entries whose expiry is before ``now``.

        Expired keys are computed from a snapshot outside the lock and then
        deleted in batches; an entry overwritten in between is kept.

        :returns: Number of revocation entries removed.
        """
        now = now or self._clock()
        with self._lock:
            snapshot = list(self._revoked.items())
            registered = [
                (uid, token, exp)
                for uid, tokens in self._refresh_by_user.items()
                for token, exp in tokens.items()
            ]

        expired = [(token, exp) for token, exp in snapshot if exp < now]
        stale = [(uid, token, exp) for uid, token, exp in registered if exp < now]

        removed = 0
        for start in range(0, len(expired), self._batch):
            with self._lock:
                for token, exp in expired[start : start + self._batch]:
                    if self._revoked.get(token) == exp:
                        del self._revoked[token]
                        removed += 1

        for start in range(0, len(stale), self._batch):
            with self._lock:
                for uid, token, exp in stale[start : start + self._batch]:
                    tokens = self._refresh_by_user.get(uid)
                    if tokens is not None and tokens.get(token) == exp:
                        del tokens[token]
                        if not tokens:
                            del self._refresh_by_user[uid]

        if removed:
            logger.info("memory revocation sweep", extra={"removed": removed, "backend": "memory"})
        return removed
