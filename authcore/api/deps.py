"""Request guards turning bearer tokens into authenticated identities."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import g, request

from authcore.core.errors import Forbidden, Unauthorized
from authcore.core.wiring import get_auth_service
from authcore.services.auth.dto import ClientMetadata, TokenClaims
from authcore.services.auth.errors import InvalidTokenError

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "
SUPER_ADMIN_ROLE = "super_admin"
USER_AGENT_MAX = 255


def bearer_token() -> str:
    """Return the token from ``Authorization: Bearer <token>``.

    :raises Unauthorized: Header missing or not a bearer credential.
    """
    header = request.headers.get("Authorization", "")
    if not header:
        raise Unauthorized("Authorization header required", code="missing_token")
    if not header.startswith(BEARER_PREFIX):
        raise Unauthorized("Invalid authorization header format", code="invalid_token")
    token = header[len(BEARER_PREFIX) :].strip()
    if not token:
        raise InvalidTokenError()
    return token


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, non-revoked access token.

    On success ``g.auth_claims`` holds the :class:`TokenClaims` and
    ``g.auth_token`` the raw token (needed for logout). Auth errors propagate
    to the registered handlers and render as RFC 7807 401 responses.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        g.auth_claims = get_auth_service().validate_token(token)
        g.auth_token = token
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_roles(*roles: str) -> Callable[[F], F]:
    """Ensure the authenticated user holds one of ``roles``.

    ``super_admin`` passes every role check. Must be stacked under
    :func:`require_auth`.
    """
    allowed = frozenset(roles)

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            claims = current_claims()
            if claims.role != SUPER_ADMIN_ROLE and claims.role not in allowed:
                raise Forbidden("Insufficient permissions", code="insufficient_role")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def current_claims() -> TokenClaims:
    """Return the claims stored by :func:`require_auth`.

    :raises Unauthorized: When called outside an authenticated request.
    """
    claims = getattr(g, "auth_claims", None)
    if claims is None:
        raise Unauthorized("Authentication required")
    return cast(TokenClaims, claims)


def client_metadata() -> ClientMetadata:
    """Describe the calling client for refresh-token bookkeeping."""
    user_agent = request.headers.get("User-Agent") or None
    return ClientMetadata(
        user_agent=user_agent[:USER_AGENT_MAX] if user_agent else None,
        ip_address=request.remote_addr,
    )
