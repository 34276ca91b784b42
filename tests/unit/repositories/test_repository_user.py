"""Unit tests for UserRepository and the SQLAlchemy user directory."""

from datetime import UTC, datetime

import pytest

from authcore.repositories.user import SQLAlchemyUserDirectory, UserRepository
from authcore.services._shared.errors import NotFoundError
from authcore.services.auth.dto import AuthUser
from tests.factories.user import DEFAULT_PASSWORD, TEST_PASSWORDS, UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs the lookups used at login."""

    @pytest.fixture()
    def repo(self):
        return UserRepository()

    def test_get_by_username(self, repo, session):
        u = UserFactory(username="alice", email="alice@example.com")
        session.commit()

        fetched = repo.get_by_username_or_email("alice")
        assert fetched is not None
        assert fetched.id == u.id

    def test_get_by_email_ignores_case(self, repo, session):
        u = UserFactory(username="bob", email="bob@example.com")
        session.commit()

        fetched = repo.get_by_username_or_email("  Bob@Example.COM ")
        assert fetched is not None
        assert fetched.id == u.id

    def test_username_match_is_exact(self, repo, session):
        UserFactory(username="carol", email="carol@example.com")
        session.commit()

        assert repo.get_by_username_or_email("CAROL") is None
        assert repo.get_by_username_or_email("nobody") is None

    def test_update_last_login_at(self, repo, session):
        u = UserFactory()
        session.commit()
        when = datetime(2026, 3, 1, 8, 30, tzinfo=UTC)

        repo.update_last_login_at(u.id, when)
        session.commit()

        assert repo.get(u.id).last_login_at.replace(tzinfo=UTC) == when

    def test_update_last_login_at_unknown_user(self, repo):
        with pytest.raises(NotFoundError):
            repo.update_last_login_at(999_999, datetime.now(UTC))


class TestSQLAlchemyUserDirectory:
    """The directory adapter returns detached, immutable read models."""

    @pytest.fixture()
    def directory(self):
        return SQLAlchemyUserDirectory()

    def test_lookup_returns_dto(self, directory, session):
        u = UserFactory(username="dave", email="dave@example.com", role="admin")
        session.commit()

        user = directory.get_by_username_or_email("dave@example.com")

        assert isinstance(user, AuthUser)
        assert (user.id, user.username, user.role, user.is_active) == (u.id, "dave", "admin", True)
        assert user.last_login_at is None
        assert TEST_PASSWORDS.compare(user.password_hash, DEFAULT_PASSWORD)

    def test_get_by_id(self, directory, session):
        u = UserFactory(is_active=False)
        session.commit()

        user = directory.get_by_id(u.id)

        assert user is not None
        assert user.is_active is False
        assert directory.get_by_id(999_999) is None

    def test_unknown_identifier(self, directory):
        assert directory.get_by_username_or_email("ghost") is None

    def test_update_last_login_round_trips_as_utc(self, directory, session):
        u = UserFactory()
        session.commit()
        when = datetime(2026, 4, 2, 12, 0, 5, tzinfo=UTC)

        directory.update_last_login_at(u.id, when)

        assert directory.get_by_id(u.id).last_login_at == when

    def test_update_last_login_unknown_user(self, directory):
        with pytest.raises(NotFoundError):
            directory.update_last_login_at(999_999, datetime.now(UTC))
