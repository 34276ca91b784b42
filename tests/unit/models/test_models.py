"""Tests for the User and RefreshToken models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from authcore.models.base import as_utc
from authcore.models.refresh_token import RefreshToken
from authcore.models.user import User


class TestUser:
    def test_defaults(self, session):
        u = User(email="Test@Example.com ", username=" tester ", password_hash="x")
        session.add(u)
        session.commit()

        assert u.email == "test@example.com"
        assert u.username == "tester"
        assert u.role == "user"
        assert u.is_active is True
        assert u.last_login_at is None

    def test_email_unique(self, session):
        session.add(User(email="alice@example.com", username="alice", password_hash="x"))
        session.commit()

        session.add(User(email="Alice@example.com", username="alice2", password_hash="x"))
        with pytest.raises(IntegrityError):
            session.commit()

    @pytest.mark.parametrize("email", ["", "no-at-sign", "user@localhost"])
    def test_email_validation(self, email):
        with pytest.raises(ValueError):
            User(email=email, username="u", password_hash="x")

    def test_username_required(self):
        with pytest.raises(ValueError):
            User(email="ok@example.com", username="   ", password_hash="x")


class TestRefreshToken:
    def test_token_hash_unique(self, session):
        exp = datetime.now(UTC) + timedelta(days=1)
        session.add(RefreshToken(token_hash="a" * 64, expires_at=exp))
        session.commit()

        session.add(RefreshToken(token_hash="a" * 64, expires_at=exp))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_is_revoked(self):
        row = RefreshToken(token_hash="b" * 64, expires_at=datetime.now(UTC))
        assert row.is_revoked is False
        row.revoked_at = datetime.now(UTC)
        assert row.is_revoked is True


def test_as_utc_labels_naive_values():
    naive = datetime(2026, 1, 1, 12, 0)
    assert as_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    assert as_utc(None) is None
