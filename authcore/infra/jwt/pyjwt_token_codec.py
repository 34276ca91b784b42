# authcore/infra/jwt/pyjwt_token_codec.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from authcore.services._shared.ports.token_codec import TokenCodec
from authcore.services.auth.dto import (
    ACCESS_SUBJECT,
    REFRESH_SUBJECT,
    AccessClaims,
    AuthTokenConfig,
    RefreshClaims,
)
from authcore.services.auth.errors import (
    InvalidTokenError,
    RefreshTokenInvalidError,
    TokenError,
    TokenExpiredError,
)

SUPPORTED_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})
_REQUIRED_CLAIMS = ["exp", "iat", "sub", "user_id"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class JWTTokenCodec(TokenCodec):
    """
    HMAC-signed JWT adapter built on PyJWT.

    Expiry is evaluated against ``clock`` instead of PyJWT's wall clock so
    tests and callers control time explicitly.

    :param secret: Signing key; the only key tokens are verified against.
    :param access_ttl: Access token lifetime.
    :param refresh_ttl: Refresh token lifetime.
    :param algorithm: ``HS256`` unless configured otherwise.
    :param clock: Returns the current UTC instant.
    """

    secret: str
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    algorithm: str = "HS256"
    clock: Callable[[], datetime] = field(default=_utcnow)

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("JWTTokenCodec requires a non-empty secret")
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm {self.algorithm!r}")

    @classmethod
    def from_config(
        cls, config: AuthTokenConfig, *, clock: Callable[[], datetime] | None = None
    ) -> JWTTokenCodec:
        """Build a codec from an :class:`AuthTokenConfig`."""
        return cls(
            secret=config.secret,
            access_ttl=config.access_expires,
            refresh_ttl=config.refresh_expires,
            algorithm=config.algorithm,
            clock=clock or _utcnow,
        )

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def issue_access_token(
        self, user_id: int, username: str, email: str, role: str
    ) -> tuple[str, datetime]:
        return self._encode(
            {"user_id": user_id, "username": username, "email": email, "role": role},
            subject=ACCESS_SUBJECT,
            ttl=self.access_ttl,
        )

    def issue_refresh_token(self, user_id: int) -> tuple[str, datetime]:
        return self._encode({"user_id": user_id}, subject=REFRESH_SUBJECT, ttl=self.refresh_ttl)

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def verify_access_token(self, token: str) -> AccessClaims:
        payload = self._decode(token, subject=ACCESS_SUBJECT, error=InvalidTokenError)
        username = payload.get("username")
        email = payload.get("email")
        role = payload.get("role")
        if not all(isinstance(v, str) for v in (username, email, role)):
            raise InvalidTokenError("invalid token claims")
        return AccessClaims(
            user_id=payload["user_id"],
            username=username,
            email=email,
            role=role,
            issued_at=_from_ts(payload["iat"]),
            expires_at=_from_ts(payload["exp"]),
            token_id=str(payload.get("jti", "")),
        )

    def verify_refresh_token(self, token: str) -> RefreshClaims:
        payload = self._decode(token, subject=REFRESH_SUBJECT, error=RefreshTokenInvalidError)
        return RefreshClaims(
            user_id=payload["user_id"],
            issued_at=_from_ts(payload["iat"]),
            expires_at=_from_ts(payload["exp"]),
            token_id=str(payload.get("jti", "")),
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _encode(self, claims: dict[str, Any], *, subject: str, ttl: timedelta) -> tuple[str, datetime]:
        # JWT timestamps are whole seconds; truncate so the returned expiry matches ``exp``.
        issued_at = self.clock().astimezone(UTC).replace(microsecond=0)
        expires_at = issued_at + ttl
        payload = {
            **claims,
            "sub": subject,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": uuid4().hex,
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return token, expires_at

    def _decode(self, token: str, *, subject: str, error: type[TokenError]) -> dict[str, Any]:
        if not isinstance(token, str) or not token:
            raise error()
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
        except jwt.PyJWTError as exc:
            raise error() from exc

        exp = payload["exp"]
        user_id = payload["user_id"]
        if not isinstance(exp, int | float) or isinstance(exp, bool):
            raise error()
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise error()
        if not isinstance(payload["iat"], int | float):
            raise error()
        try:
            _from_ts(exp)
            _from_ts(payload["iat"])
        except (OverflowError, ValueError, OSError) as exc:
            raise error() from exc

        if self.clock().timestamp() >= exp:
            raise TokenExpiredError()
        if payload["sub"] != subject:
            raise error()
        return payload


def _from_ts(value: int | float) -> datetime:
    return datetime.fromtimestamp(int(value), tz=UTC)
