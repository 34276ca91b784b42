# authcore/infra/redis/redis_revocation_repository.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import cast

import redis  # type: ignore[import-untyped]

from authcore.services._shared.ports.revocation_repository import (
    RevocationRecord,
    RevocationRepository,
)


def _b(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRevocationRepository(RevocationRepository):
    """
    Redis-backed revocation records.

    Layout:

    * ``revoke:rt:{hash}``: hash with ``user_id``, ``expires_at``, ``created_at``,
      ``revoked_at`` and client metadata; expires with the token.
    * ``revoke:u:{user_id}``: set of token hashes owned by a user.

    ``revoked_at`` is written with ``HSETNX`` so the first revocation wins.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token_hash: str) -> str:
        return f"revoke:rt:{token_hash}"

    @staticmethod
    def _ku(user_id: int | str) -> str:
        return f"revoke:u:{user_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        # naive -> label as UTC (no conversion)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())

    @staticmethod
    def _from_ts(raw: bytes | str | None) -> datetime | None:
        value = _b(raw)
        return datetime.fromtimestamp(int(value), tz=UTC) if value else None

    def _to_record(self, token_hash: str, raw: dict) -> RevocationRecord:
        h = {_b(k): v for k, v in raw.items()}
        user_id = _b(h.get("user_id"))
        return RevocationRecord(
            token_hash=token_hash,
            user_id=int(user_id) if user_id else None,
            expires_at=datetime.fromtimestamp(int(_b(h.get("expires_at"), "0")), tz=UTC),
            revoked_at=self._from_ts(h.get("revoked_at")),
            created_at=self._from_ts(h.get("created_at")),
            user_agent=_b(h.get("user_agent")) or None,
            ip_address=_b(h.get("ip_address")) or None,
        )

    # -------------------- API ------------------------

    def create(self, record: RevocationRecord) -> bool:
        key = self._k(record.token_hash)
        now_ts = self._to_ts(datetime.now(UTC))
        exp_ts = self._to_ts(record.expires_at)
        ttl = max(1, exp_ts - now_ts)

        mapping = {
            "expires_at": str(exp_ts),
            "created_at": str(self._to_ts(record.created_at or datetime.now(UTC))),
        }
        if record.user_id is not None:
            mapping["user_id"] = str(record.user_id)
        if record.revoked_at is not None:
            mapping["revoked_at"] = str(self._to_ts(record.revoked_at))
        if record.user_agent:
            mapping["user_agent"] = record.user_agent
        if record.ip_address:
            mapping["ip_address"] = record.ip_address

        # Retry loop for optimistic locking in case of concurrent inserts
        while True:
            try:
                with self.r.pipeline() as p:
                    index = self._ku(record.user_id) if record.user_id is not None else None
                    p.watch(key, *([index] if index else []))
                    if p.exists(key):
                        p.unwatch()
                        return False
                    # The index lives as long as its longest-lived member
                    index_ttl = max(ttl, int(p.ttl(index))) if index else ttl
                    p.multi()
                    p.hset(key, mapping=mapping)
                    p.expire(key, ttl)
                    if index:
                        p.sadd(index, record.token_hash)
                        p.expire(index, index_ttl)
                    p.execute()
                return True
            except redis.WatchError:
                continue

    def get_by_hash(self, token_hash: str) -> RevocationRecord | None:
        h = self.r.hgetall(self._k(token_hash))
        if not h:
            return None
        return self._to_record(token_hash, h)

    def revoke_by_hash(self, token_hash: str, now: datetime) -> bool:
        key = self._k(token_hash)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    if not p.exists(key):
                        p.unwatch()
                        return False
                    p.multi()
                    p.hsetnx(key, "revoked_at", str(self._to_ts(now)))
                    out = cast(list[int], p.execute())
                return bool(out[0])
            except redis.WatchError:
                continue

    def revoke_all_by_user_id(self, user_id: int, now: datetime) -> int:
        self._prune_index(self._ku(user_id))
        hashes = [_b(member) for member in self.r.smembers(self._ku(user_id))]
        return sum(1 for h in hashes if self.revoke_by_hash(h, now))

    def delete_expired(self, now: datetime) -> int:
        now_ts = self._to_ts(now)
        prefix = self._k("")
        removed = 0
        for raw_key in self.r.scan_iter(match=f"{prefix}*"):
            key = _b(raw_key)
            exp_raw, uid_raw = self.r.hmget(key, ["expires_at", "user_id"])
            if exp_raw is None or int(_b(exp_raw)) >= now_ts:
                continue
            token_hash = key[len(prefix) :]
            pipe = self.r.pipeline(transaction=True)
            pipe.delete(key)
            if uid_raw is not None:
                pipe.srem(self._ku(_b(uid_raw)), token_hash)
            out = cast(list[int], pipe.execute())
            removed += int(out[0])

        # Records dropped by their own TTL never reach the loop above
        for raw_index in self.r.scan_iter(match=f"{self._ku('')}*"):
            self._prune_index(_b(raw_index))
        return removed

    def _prune_index(self, index: str) -> int:
        """Remove index members whose record key no longer exists."""
        stale = [m for m in self.r.smembers(index) if not self.r.exists(self._k(_b(m)))]
        if not stale:
            return 0
        return int(self.r.srem(index, *stale))
