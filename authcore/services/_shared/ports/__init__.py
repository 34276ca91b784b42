"""
authcore.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts
between the authentication service and its infrastructure.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec`: minting and verification of signed tokens.

- :mod:`revocation_store`:
    Defines :class:`~.RevocationStore`: revoked-token bookkeeping.

- :mod:`revocation_repository`:
    Defines :class:`~.RevocationRepository` and :class:`~.RevocationRecord`:
    hash-keyed storage behind the persistent revocation store.

- :mod:`user_directory`:
    Defines :class:`~.UserDirectory`: account lookups.

- :mod:`password_verifier`:
    Defines :class:`~.PasswordVerifier`: password hash comparison.

Concrete adapters (Redis, SQLAlchemy, PyJWT, Werkzeug) live under
``authcore.infra`` and ``authcore.repositories``.
"""

from __future__ import annotations

from .password_verifier import PasswordVerifier, StubPasswordVerifier
from .revocation_repository import (
    InMemoryRevocationRepository,
    RevocationRecord,
    RevocationRepository,
)
from .revocation_store import RevocationStore
from .token_codec import TokenCodec
from .user_directory import InMemoryUserDirectory, UserDirectory

__all__ = [
    "TokenCodec",
    "RevocationStore",
    "RevocationRepository",
    "RevocationRecord",
    "InMemoryRevocationRepository",
    "UserDirectory",
    "InMemoryUserDirectory",
    "PasswordVerifier",
    "StubPasswordVerifier",
]
