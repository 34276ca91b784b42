# authcore/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

# Token subjects (the ``sub`` claim)
ACCESS_SUBJECT = "access"
REFRESH_SUBJECT = "refresh"

# ---------------------------- Claims -------------------------------------- #


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Decoded payload of an access token.

    :param user_id: Owner user id (``user_id`` claim).
    :param username: Username at issuance.
    :param email: Email at issuance.
    :param role: Role at issuance.
    :param issued_at: ``iat`` (UTC).
    :param expires_at: ``exp`` (UTC).
    :param token_id: ``jti``; makes every minted token unique.
    :param subject: Always ``"access"``.
    """

    user_id: int
    username: str
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime
    token_id: str
    subject: str = ACCESS_SUBJECT


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    """
    Decoded payload of a refresh token.

    :param user_id: Owner user id.
    :param issued_at: ``iat`` (UTC).
    :param expires_at: ``exp`` (UTC).
    :param token_id: ``jti``.
    :param subject: Always ``"refresh"``.
    """

    user_id: int
    issued_at: datetime
    expires_at: datetime
    token_id: str
    subject: str = REFRESH_SUBJECT


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Identity extracted from a validated access token."""

    user_id: int
    username: str
    email: str
    role: str
    expires_at: datetime

    @classmethod
    def from_access(cls, claims: AccessClaims) -> TokenClaims:
        return cls(
            user_id=claims.user_id,
            username=claims.username,
            email=claims.email,
            role=claims.role,
            expires_at=claims.expires_at,
        )


# ---------------------------- Read models --------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthUser:
    """
    User as seen by the authentication engine.

    :param id: User id.
    :param username: Unique handle.
    :param email: Normalized email.
    :param role: Authorization role (``user``, ``admin``, ``super_admin``...).
    :param is_active: ``False`` blocks login and refresh.
    :param password_hash: Opaque hash understood by the ``PasswordVerifier``.
    :param last_login_at: Last successful login (UTC), if any.
    """

    id: int
    username: str
    email: str
    role: str
    is_active: bool
    password_hash: str
    last_login_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ClientMetadata:
    """
    Client context recorded next to a stored refresh token.

    :param user_agent: ``User-Agent`` header, truncated by the adapter.
    :param ip_address: Remote address (after proxy normalization).
    """

    user_agent: str | None = None
    ip_address: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthResult:
    """
    Output of login and refresh.

    :param user: Authenticated user.
    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param expires_at: Access token expiry (UTC).
    :param refresh_expires_at: Refresh token expiry (UTC).
    """

    user: AuthUser
    access_token: str
    refresh_token: str
    expires_at: datetime
    refresh_expires_at: datetime


# ------------------------ Config DTO --------------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param secret: HMAC signing key.
    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    :param algorithm: HMAC algorithm name understood by PyJWT.
    """

    secret: str
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    algorithm: str = "HS256"
