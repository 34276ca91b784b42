from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RevocationRecord:
    """
    Persistent trace of a token, keyed by its SHA-256 digest.

    :ivar token_hash: Hex SHA-256 of the raw token; the raw token is never stored.
    :ivar user_id: Owner user id, when known.
    :ivar expires_at: Natural expiry of the token (UTC).
    :ivar revoked_at: Revocation instant (UTC); ``None`` while the token is live.
    :ivar created_at: Record creation instant (UTC).
    :ivar user_agent: Client user agent at issuance.
    :ivar ip_address: Client address at issuance.
    """

    token_hash: str
    expires_at: datetime
    user_id: int | None = None
    revoked_at: datetime | None = None
    created_at: datetime | None = None
    user_agent: str | None = None
    ip_address: str | None = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


class RevocationRepository(Protocol):
    """
    Storage contract behind :class:`PersistentRevocationStore`.

    ``revoked_at`` is monotonic: implementations only set it when it is
    currently ``None`` and never clear it.
    """

    def create(self, record: RevocationRecord) -> bool:
        """
        Insert ``record`` unless one with the same hash exists.

        :returns: ``True`` if inserted, ``False`` if the hash was already present.
        """
        ...

    def get_by_hash(self, token_hash: str) -> RevocationRecord | None:
        """Fetch a record by token hash."""
        ...

    def revoke_by_hash(self, token_hash: str, now: datetime) -> bool:
        """
        Set ``revoked_at = now`` on a non-revoked record.

        :returns: ``True`` if a record changed state.
        """
        ...

    def revoke_all_by_user_id(self, user_id: int, now: datetime) -> int:
        """Revoke every non-revoked record of a user. :returns: rows changed."""
        ...

    def delete_expired(self, now: datetime) -> int:
        """Delete records with ``expires_at < now``. :returns: rows deleted."""
        ...


class InMemoryRevocationRepository(RevocationRepository):
    """
    Dict-backed repository for unit tests.

    .. note::
       A single lock makes each call atomic, mirroring a row-level update.
    """

    def __init__(self) -> None:
        self._by_hash: dict[str, RevocationRecord] = {}
        self._by_user: dict[int, set[str]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._by_hash)

    def create(self, record: RevocationRecord) -> bool:
        with self._lock:
            if record.token_hash in self._by_hash:
                return False
            if record.created_at is None:
                record = replace(record, created_at=datetime.now(UTC))
            self._by_hash[record.token_hash] = record
            if record.user_id is not None:
                self._by_user.setdefault(record.user_id, set()).add(record.token_hash)
            return True

    def get_by_hash(self, token_hash: str) -> RevocationRecord | None:
        with self._lock:
            return self._by_hash.get(token_hash)

    def revoke_by_hash(self, token_hash: str, now: datetime) -> bool:
        with self._lock:
            rec = self._by_hash.get(token_hash)
            if rec is None or rec.is_revoked:
                return False
            self._by_hash[token_hash] = replace(rec, revoked_at=now)
            return True

    def revoke_all_by_user_id(self, user_id: int, now: datetime) -> int:
        with self._lock:
            count = 0
            for h in self._by_user.get(user_id, set()):
                rec = self._by_hash.get(h)
                if rec is not None and not rec.is_revoked:
                    self._by_hash[h] = replace(rec, revoked_at=now)
                    count += 1
            return count

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [h for h, rec in self._by_hash.items() if rec.is_expired(now)]
            for h in expired:
                rec = self._by_hash.pop(h)
                if rec.user_id is not None:
                    hashes = self._by_user.get(rec.user_id)
                    if hashes is not None:
                        hashes.discard(h)
                        if not hashes:
                            del self._by_user[rec.user_id]
            return len(expired)
