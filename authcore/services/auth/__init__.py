"""Authentication service package: DTOs and the error taxonomy.

The service itself lives in :mod:`authcore.services.auth.service`.
"""

from __future__ import annotations

from .dto import (
    AccessClaims,
    AuthResult,
    AuthTokenConfig,
    AuthUser,
    ClientMetadata,
    RefreshClaims,
    TokenClaims,
)
from .errors import (
    AuthError,
    InvalidCredentialsError,
    InvalidTokenError,
    RefreshTokenInvalidError,
    RevocationStoreError,
    TokenBlacklistedError,
    TokenError,
    TokenExpiredError,
    UserInactiveError,
)

__all__ = [
    "AccessClaims",
    "AuthResult",
    "AuthTokenConfig",
    "AuthUser",
    "ClientMetadata",
    "RefreshClaims",
    "TokenClaims",
    "AuthError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "RefreshTokenInvalidError",
    "RevocationStoreError",
    "TokenBlacklistedError",
    "TokenError",
    "TokenExpiredError",
    "UserInactiveError",
]
