"""Token record persistence and the SQLAlchemy-backed ``RevocationRepository``."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import cast

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from authcore.models.base import as_utc
from authcore.models.refresh_token import RefreshToken
from authcore.repositories.base import BaseRepository
from authcore.services._shared.ports.revocation_repository import (
    RevocationRecord,
    RevocationRepository,
)


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken` rows."""

    model = RefreshToken

    def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def revoke_by_hash(self, token_hash: str, now: datetime) -> int:
        """Set ``revoked_at`` where still ``NULL``. :returns: rows updated."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_hash == token_hash, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def revoke_all_by_user_id(self, user_id: int, now: datetime) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)


def to_record(row: RefreshToken) -> RevocationRecord:
    """Project an ORM row to the immutable record DTO (UTC-aware datetimes)."""
    return RevocationRecord(
        token_hash=row.token_hash,
        user_id=row.user_id,
        expires_at=cast(datetime, as_utc(row.expires_at)),
        revoked_at=as_utc(row.revoked_at),
        created_at=as_utc(row.created_at),
        user_agent=row.user_agent,
        ip_address=row.ip_address,
    )


class SQLAlchemyRevocationRepository(RevocationRepository):
    """
    ``RevocationRepository`` over the ``refresh_tokens`` table.

    Every call is its own Unit of Work; ``SQLAlchemyError`` propagates to the
    store, which converts it to ``RevocationStoreError``.

    :param rw_uow: Factory for read-write units of work.
    :param ro_uow: Factory for read-only units of work.
    """

    def __init__(
        self,
        *,
        rw_uow: Callable | None = None,
        ro_uow: Callable | None = None,
    ) -> None:
        from authcore.uow.sqlalchemy_uow import (
            SQLAlchemyReadOnlyUnitOfWork,
            SQLAlchemyUnitOfWork,
        )

        self._rw_uow = rw_uow or SQLAlchemyUnitOfWork
        self._ro_uow = ro_uow or SQLAlchemyReadOnlyUnitOfWork

    def create(self, record: RevocationRecord) -> bool:
        row = RefreshToken(
            token_hash=record.token_hash,
            user_id=record.user_id,
            expires_at=record.expires_at,
            revoked_at=record.revoked_at,
            user_agent=record.user_agent,
            ip_address=record.ip_address,
        )
        if record.created_at is not None:
            row.created_at = record.created_at
        try:
            with self._rw_uow() as uow:
                if uow.refresh_tokens.get_by_hash(record.token_hash) is not None:
                    return False
                uow.refresh_tokens.add(row)
        except IntegrityError:
            # Unique token_hash raced with a concurrent insert
            return False
        return True

    def get_by_hash(self, token_hash: str) -> RevocationRecord | None:
        with self._ro_uow() as uow:
            row = uow.refresh_tokens.get_by_hash(token_hash)
            return to_record(row) if row is not None else None

    def revoke_by_hash(self, token_hash: str, now: datetime) -> bool:
        with self._rw_uow() as uow:
            return uow.refresh_tokens.revoke_by_hash(token_hash, now) > 0

    def revoke_all_by_user_id(self, user_id: int, now: datetime) -> int:
        with self._rw_uow() as uow:
            return uow.refresh_tokens.revoke_all_by_user_id(user_id, now)

    def delete_expired(self, now: datetime) -> int:
        with self._rw_uow() as uow:
            return uow.refresh_tokens.delete_expired(now)
