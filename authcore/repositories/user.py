"""User persistence and the SQLAlchemy-backed ``UserDirectory`` adapter."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import cast

from sqlalchemy import or_, select

from authcore.models.base import as_utc
from authcore.models.user import User
from authcore.repositories.base import BaseRepository
from authcore.services._shared.errors import NotFoundError
from authcore.services._shared.ports.user_directory import UserDirectory
from authcore.services.auth.dto import AuthUser


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It never handles tokens or password verification.
    """

    model = User

    def get_by_username_or_email(self, identifier: str) -> User | None:
        """Fetch a user by exact username or normalized email.

        :param identifier: Username or email typed at login.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(
            or_(User.username == identifier, User.email == identifier.strip().lower())
        )
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def update_last_login_at(self, user_id: int, when: datetime) -> None:
        """Set ``last_login_at`` and flush.

        :raises NotFoundError: If the user does not exist.
        """
        user = self.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        user.last_login_at = when
        self.flush()


def to_auth_user(user: User) -> AuthUser:
    """Project an ORM ``User`` to the immutable read model."""
    return AuthUser(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        is_active=bool(user.is_active),
        password_hash=user.password_hash,
        last_login_at=as_utc(user.last_login_at),
    )


class SQLAlchemyUserDirectory(UserDirectory):
    """
    ``UserDirectory`` over the ``users`` table.

    Each call runs in its own Unit of Work and returns detached DTOs, so the
    service never sees ORM instances.

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

    def get_by_username_or_email(self, identifier: str) -> AuthUser | None:
        with self._ro_uow() as uow:
            user = uow.users.get_by_username_or_email(identifier)
            return to_auth_user(user) if user is not None else None

    def get_by_id(self, user_id: int) -> AuthUser | None:
        with self._ro_uow() as uow:
            user = uow.users.get(user_id)
            return to_auth_user(user) if user is not None else None

    def update_last_login_at(self, user_id: int, when: datetime) -> None:
        with self._rw_uow() as uow:
            uow.users.update_last_login_at(user_id, when)
