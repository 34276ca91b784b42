# authcore/infra/revocation/persistent_store.py
from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TypeVar

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from authcore.services._shared.ports.revocation_repository import (
    RevocationRecord,
    RevocationRepository,
)
from authcore.services._shared.ports.revocation_store import RevocationStore
from authcore.services.auth.dto import ClientMetadata
from authcore.services.auth.errors import RevocationStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_AGENT_MAX = 255
IP_ADDRESS_MAX = 45

_BACKEND_ERRORS: tuple[type[Exception], ...] = (SQLAlchemyError, RedisError)


def hash_token(token: str) -> str:
    """Return the hex SHA-256 digest used as the storage key for ``token``."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _clip(value: str | None, limit: int) -> str | None:
    return value[:limit] if value else None


class PersistentRevocationStore(RevocationStore):
    """
    Revocation store backed by a :class:`RevocationRepository`.

    Records are keyed by ``sha256(token)``; a record blocks its token once
    ``revoked_at`` is set. Backend exceptions surface as
    :class:`RevocationStoreError`.

    :param repository: Storage adapter (SQLAlchemy, Redis or in-memory).
    :param clock: Returns the current UTC instant.
    :param backend: Label used in log records.
    """

    def __init__(
        self,
        repository: RevocationRepository,
        *,
        clock: Callable[[], datetime] | None = None,
        backend: str = "database",
    ) -> None:
        self.repository = repository
        self._clock = clock or _utcnow
        self.backend = backend

    def _call(self, action: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except _BACKEND_ERRORS as exc:
            logger.error(
                "revocation store %s failed", action, exc_info=True, extra={"backend": self.backend}
            )
            raise RevocationStoreError() from exc

    # ------------------------------------------------------------------ #
    # RevocationStore
    # ------------------------------------------------------------------ #

    def add(self, token: str, expires_at: datetime, *, user_id: int | None = None) -> None:
        token_hash = hash_token(token)
        now = self._clock()

        def _add() -> None:
            if self.repository.get_by_hash(token_hash) is not None:
                self.repository.revoke_by_hash(token_hash, now)
                return
            record = RevocationRecord(
                token_hash=token_hash,
                user_id=user_id,
                expires_at=expires_at,
                revoked_at=now,
                created_at=now,
            )
            if not self.repository.create(record):
                # Registered concurrently; revoke the row that won.
                self.repository.revoke_by_hash(token_hash, now)

        self._call("add", _add)
        logger.info("token revoked", extra={"user_id": user_id, "backend": self.backend})

    def is_revoked(self, token: str) -> bool:
        record = self._call("read", lambda: self.repository.get_by_hash(hash_token(token)))
        return record is not None and record.is_revoked

    def register_refresh_token(
        self,
        user_id: int,
        token: str,
        expires_at: datetime,
        client: ClientMetadata | None = None,
    ) -> None:
        client = client or ClientMetadata()
        record = RevocationRecord(
            token_hash=hash_token(token),
            user_id=user_id,
            expires_at=expires_at,
            created_at=self._clock(),
            user_agent=_clip(client.user_agent, USER_AGENT_MAX),
            ip_address=_clip(client.ip_address, IP_ADDRESS_MAX),
        )
        self._call("register", lambda: self.repository.create(record))

    def revoke_all_for_user(self, user_id: int) -> int:
        now = self._clock()
        count = self._call(
            "revoke_all", lambda: self.repository.revoke_all_by_user_id(user_id, now)
        )
        logger.info(
            "revoked all tokens for user",
            extra={"user_id": user_id, "removed": count, "backend": self.backend},
        )
        return count

    def sweep(self, now: datetime | None = None) -> int:
        now = now or self._clock()
        removed = self._call("sweep", lambda: self.repository.delete_expired(now))
        logger.info(
            "persistent revocation sweep", extra={"removed": removed, "backend": self.backend}
        )
        return removed
