from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Protocol

from authcore.services._shared.errors import NotFoundError
from authcore.services.auth.dto import AuthUser


class UserDirectory(Protocol):
    """Read access to user accounts plus the last-login bookkeeping write."""

    def get_by_username_or_email(self, identifier: str) -> AuthUser | None:
        """Look a user up by exact username or case-insensitive email."""
        ...

    def get_by_id(self, user_id: int) -> AuthUser | None:
        """Fetch a user by primary key."""
        ...

    def update_last_login_at(self, user_id: int, when: datetime) -> None:
        """
        Persist the last successful login instant.

        :raises NotFoundError: If the user does not exist.
        """
        ...


class InMemoryUserDirectory(UserDirectory):
    """Simple in-memory directory for unit tests."""

    def __init__(self, users: list[AuthUser] | None = None) -> None:
        self._users: dict[int, AuthUser] = {}
        self._lock = threading.Lock()
        for user in users or []:
            self.add(user)

    def add(self, user: AuthUser) -> AuthUser:
        with self._lock:
            self._users[user.id] = user
        return user

    def get_by_username_or_email(self, identifier: str) -> AuthUser | None:
        email = identifier.strip().lower()
        with self._lock:
            for user in self._users.values():
                if user.username == identifier or user.email == email:
                    return user
        return None

    def get_by_id(self, user_id: int) -> AuthUser | None:
        with self._lock:
            return self._users.get(user_id)

    def update_last_login_at(self, user_id: int, when: datetime) -> None:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            self._users[user_id] = replace(user, last_login_at=when)
