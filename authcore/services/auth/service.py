# authcore/services/auth/service.py
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.errors import ServiceError
from authcore.services._shared.ports.password_verifier import PasswordVerifier
from authcore.services._shared.ports.revocation_store import RevocationStore
from authcore.services._shared.ports.token_codec import TokenCodec
from authcore.services._shared.ports.user_directory import UserDirectory
from authcore.services.auth.dto import AuthResult, AuthUser, ClientMetadata, TokenClaims
from authcore.services.auth.errors import (
    AuthError,
    InvalidCredentialsError,
    InvalidTokenError,
    RefreshTokenInvalidError,
    RevocationStoreError,
    TokenBlacklistedError,
    TokenError,
    UserInactiveError,
)

logger = logging.getLogger(__name__)


class AuthenticationService(BaseService):
    """
    Authentication lifecycle service (login / refresh / logout / validate).

    Tokens are minted and verified through a :class:`TokenCodec`; revoked
    tokens are tracked by a :class:`RevocationStore`. The service never
    touches signing keys or storage directly.

    Lifecycle of a credential::

        Anonymous --login--> Authenticated --logout--> Revoked
                                   |  \\--exp--> Expired
                                   \\--refresh--> Rotated (new pair)
    """

    def __init__(
        self,
        *,
        users: UserDirectory,
        passwords: PasswordVerifier,
        codec: TokenCodec,
        store: RevocationStore,
        clock: Callable[[], datetime] | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param users: Account lookups and last-login bookkeeping.
        :param passwords: Password hash comparison.
        :param codec: Token minting/verification.
        :param store: Revocation bookkeeping.
        :param clock: UTC clock used for ``last_login_at``.
        :param ctx: Optional request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.users = users
        self.passwords = passwords
        self.codec = codec
        self.store = store
        self._clock = clock or self.now_utc

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(
        self, identifier: str, password: str, client: ClientMetadata | None = None
    ) -> AuthResult:
        """
        Authenticate credentials and issue a fresh token pair.

        :param identifier: Username or email.
        :param password: Plain text password candidate.
        :param client: Optional client metadata stored with the refresh token.
        :raises InvalidCredentialsError: Unknown user, wrong password, or the lookup failed.
        :raises UserInactiveError: Account deactivated.
        :raises RevocationStoreError: Refresh token could not be registered.
        """
        user = self._lookup_user(
            lambda: self.users.get_by_username_or_email(identifier), InvalidCredentialsError
        )
        if user is None:
            logger.warning("login failed: unknown identifier")
            raise InvalidCredentialsError()
        if not user.is_active:
            logger.warning("login refused: inactive user", extra={"user_id": user.id})
            raise UserInactiveError()
        if not self.passwords.compare(user.password_hash, password):
            logger.warning("login failed: bad password", extra={"user_id": user.id})
            raise InvalidCredentialsError()

        result = self._issue_pair(user, client)

        # Best effort: a failed bookkeeping write never blocks a login.
        try:
            self.users.update_last_login_at(user.id, self._clock())
        except Exception:
            logger.warning(
                "failed to update last_login_at", exc_info=True, extra={"user_id": user.id}
            )

        logger.info("login succeeded", extra={"user_id": user.id})
        return result

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, user_id: int, token: str) -> None:
        """
        Revoke an access token owned by ``user_id``.

        :raises InvalidTokenError: Token malformed, expired or owned by someone else.
        :raises RevocationStoreError: Revocation could not be recorded.
        """
        try:
            claims = self.codec.verify_access_token(token)
        except TokenError as exc:
            raise InvalidTokenError() from exc

        if claims.user_id != user_id:
            logger.warning("logout refused: token owner mismatch", extra={"user_id": user_id})
            raise InvalidTokenError()

        self.store.add(token, claims.expires_at, user_id=claims.user_id)
        logger.info("logout", extra={"user_id": user_id})

    def logout_all(self, user_id: int) -> int:
        """
        Revoke every registered refresh token of ``user_id`` (all devices).

        :returns: Number of tokens newly revoked.
        """
        count = self.store.revoke_all_for_user(user_id)
        logger.info("logout from all devices", extra={"user_id": user_id, "removed": count})
        return count

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh_token(self, refresh_token: str, client: ClientMetadata | None = None) -> AuthResult:
        """
        Exchange a valid refresh token for a new token pair.

        The presented refresh token is not revoked; it stays usable until it
        expires or is revoked explicitly.

        :raises RefreshTokenInvalidError: Token invalid, expired or revoked, owner gone,
            or the owner lookup failed.
        :raises UserInactiveError: Owner deactivated.
        """
        try:
            claims = self.codec.verify_refresh_token(refresh_token)
        except TokenError as exc:
            raise RefreshTokenInvalidError() from exc

        try:
            revoked = self.store.is_revoked(refresh_token)
        except RevocationStoreError as exc:
            logger.error("revocation lookup failed during refresh", exc_info=True)
            raise RefreshTokenInvalidError() from exc
        if revoked:
            logger.warning("refresh with revoked token", extra={"user_id": claims.user_id})
            raise RefreshTokenInvalidError()

        user = self._lookup_user(
            lambda: self.users.get_by_id(claims.user_id), RefreshTokenInvalidError
        )
        if user is None:
            raise RefreshTokenInvalidError()
        if not user.is_active:
            raise UserInactiveError()

        return self._issue_pair(user, client)

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate_token(self, token: str) -> TokenClaims:
        """
        Validate an access token for a protected request.

        :raises TokenBlacklistedError: Token revoked.
        :raises TokenExpiredError: Token expired.
        :raises InvalidTokenError: Token invalid, or the revocation lookup failed.
        """
        try:
            revoked = self.store.is_revoked(token)
        except RevocationStoreError as exc:
            # Fail closed: an unknown revocation state is not trusted.
            logger.error("revocation lookup failed during validation", exc_info=True)
            raise InvalidTokenError() from exc
        if revoked:
            raise TokenBlacklistedError()

        claims = self.codec.verify_access_token(token)
        return TokenClaims.from_access(claims)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _lookup_user(
        self, lookup: Callable[[], AuthUser | None], error: type[AuthError]
    ) -> AuthUser | None:
        """Run a directory lookup; storage failures surface as ``error``."""
        try:
            return lookup()
        except ServiceError:
            raise
        except Exception as exc:
            logger.error("user lookup failed", exc_info=True)
            raise error() from exc

    def _issue_pair(self, user: AuthUser, client: ClientMetadata | None) -> AuthResult:
        access, access_exp = self.codec.issue_access_token(
            user.id, user.username, user.email, user.role
        )
        refresh, refresh_exp = self.codec.issue_refresh_token(user.id)
        self.store.register_refresh_token(user.id, refresh, refresh_exp, client)
        return AuthResult(
            user=user,
            access_token=access,
            refresh_token=refresh,
            expires_at=access_exp,
            refresh_expires_at=refresh_exp,
        )
