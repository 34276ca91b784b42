from __future__ import annotations

from datetime import datetime
from typing import Protocol

from authcore.services.auth.dto import AccessClaims, RefreshClaims


class TokenCodec(Protocol):
    """
    Port for minting and verifying signed bearer tokens.

    Implementations are pure functions of ``(token, secret, clock)``: no I/O,
    no shared mutable state, safe to call from any thread.
    """

    def issue_access_token(
        self, user_id: int, username: str, email: str, role: str
    ) -> tuple[str, datetime]:
        """
        Mint an access token.

        :returns: ``(token, expires_at)``.
        """
        ...

    def issue_refresh_token(self, user_id: int) -> tuple[str, datetime]:
        """
        Mint a refresh token carrying only the user id.

        :returns: ``(token, expires_at)``.
        """
        ...

    def verify_access_token(self, token: str) -> AccessClaims:
        """
        Verify signature, subject and expiry of an access token.

        :raises TokenExpiredError: Signature valid but ``exp`` passed.
        :raises InvalidTokenError: Malformed, bad signature or wrong subject.
        """
        ...

    def verify_refresh_token(self, token: str) -> RefreshClaims:
        """
        Verify signature, subject and expiry of a refresh token.

        :raises TokenExpiredError: Signature valid but ``exp`` passed.
        :raises RefreshTokenInvalidError: Malformed, bad signature or wrong subject.
        """
        ...
