"""Unit tests for service error translation."""

from __future__ import annotations

import pytest

from authcore.core import errors as api_errors
from authcore.services._shared.base import BaseService
from authcore.services._shared.errors import NotFoundError, ServiceError
from authcore.services.auth.errors import (
    InvalidCredentialsError,
    InvalidTokenError,
    RefreshTokenInvalidError,
    RevocationStoreError,
    TokenBlacklistedError,
    TokenExpiredError,
    UserInactiveError,
)


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (InvalidCredentialsError(), 401, "invalid_credentials"),
        (TokenExpiredError(), 401, "token_expired"),
        (TokenBlacklistedError(), 401, "token_revoked"),
        (RefreshTokenInvalidError(), 401, "invalid_refresh_token"),
        (InvalidTokenError(), 401, "invalid_token"),
        (UserInactiveError(), 403, "user_inactive"),
        (RevocationStoreError(), 503, "service_unavailable"),
        (NotFoundError("User", 1), 404, "not_found"),
        (ServiceError("nope"), 400, "bad_request"),
    ],
)
def test_translate_exceptions(exc, status, code):
    translated = BaseService().translate_exceptions(exc)

    assert isinstance(translated, api_errors.APIError)
    assert (translated.status_code, translated.code) == (status, code)


def test_translate_keeps_default_messages():
    translated = BaseService().translate_exceptions(TokenBlacklistedError())
    assert translated.message == "token has been invalidated"


def test_translate_passes_foreign_exceptions_through():
    exc = KeyError("x")
    assert BaseService().translate_exceptions(exc) is exc
