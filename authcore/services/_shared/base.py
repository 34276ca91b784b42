# authcore/services/_shared/base.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from authcore.core import errors as api_errors
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

# Stable problem codes per auth error kind (401 unless noted)
AUTH_ERROR_CODES: tuple[tuple[type[ServiceError], str], ...] = (
    (InvalidCredentialsError, "invalid_credentials"),
    (TokenExpiredError, "token_expired"),
    (TokenBlacklistedError, "token_revoked"),
    (RefreshTokenInvalidError, "invalid_refresh_token"),
    (InvalidTokenError, "invalid_token"),
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param actor_id: Authenticated user identifier.
    :param request_id: Correlation id for logging/tracing.
    """

    actor_id: int | None = None
    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Centralize error translation to API errors.
    * Provide a single UTC clock hook.
    * Keep services thin, orchestration-only, no web/ORM leakage.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (auth, tracing).
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        for kind, code in AUTH_ERROR_CODES:
            if isinstance(exc, kind):
                # → 401 Unauthorized
                return api_errors.Unauthorized(str(exc), code=code)

        if isinstance(exc, UserInactiveError):
            # → 403 Forbidden
            return api_errors.Forbidden(str(exc), code="user_inactive")

        if isinstance(exc, RevocationStoreError):
            # → 503 Service Unavailable
            return api_errors.ServiceUnavailable(str(exc))

        if isinstance(exc, NotFoundError):
            # → 404 Not Found
            return api_errors.NotFound(str(exc))

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="bad_request",
            )

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
