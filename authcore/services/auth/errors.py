"""Authentication error taxonomy.

Every failure leaving :class:`~authcore.services.auth.service.AuthenticationService`
is one of these kinds; storage and cryptography exceptions are converted at
the adapter or service boundary and never leak upward.
"""

from __future__ import annotations

from authcore.services._shared.errors import ServiceError


class AuthError(ServiceError):
    """Base authentication error."""

    default_message = "authentication failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidCredentialsError(AuthError):
    """Unknown username/email or wrong password."""

    default_message = "invalid credentials"


class UserInactiveError(AuthError):
    """User account is deactivated."""

    default_message = "user account is inactive"


class TokenError(AuthError):
    """Base class for bearer token failures."""

    default_message = "invalid token"


class InvalidTokenError(TokenError):
    """Malformed token, bad signature, or wrong subject for the requested class."""

    default_message = "invalid token"


class TokenExpiredError(TokenError):
    """Signature is valid but ``exp`` has passed."""

    default_message = "token has expired"


class TokenBlacklistedError(TokenError):
    """Token was revoked before its natural expiry."""

    default_message = "token has been invalidated"


class RefreshTokenInvalidError(TokenError):
    """Refresh token malformed, expired, revoked, or its owner is gone."""

    default_message = "invalid refresh token"


class RevocationStoreError(AuthError):
    """The revocation backend could not complete a write."""

    default_message = "revocation store unavailable"
