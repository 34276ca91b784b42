"""Build the authentication engine from Flask config and attach it to the app."""

from __future__ import annotations

import atexit
import logging
from dataclasses import dataclass
from typing import cast

from flask import Flask, current_app

from authcore.core.config import token_ttls
from authcore.infra.jwt.pyjwt_token_codec import JWTTokenCodec
from authcore.infra.revocation.memory_store import MemoryRevocationStore
from authcore.infra.revocation.persistent_store import PersistentRevocationStore
from authcore.infra.revocation.sweeper import SweepJob
from authcore.infra.security.werkzeug_password_verifier import WerkzeugPasswordVerifier
from authcore.services._shared.ports.revocation_store import RevocationStore
from authcore.services.auth.dto import AuthTokenConfig
from authcore.services.auth.service import AuthenticationService

logger = logging.getLogger(__name__)

EXTENSION_KEY = "authcore"


@dataclass(slots=True)
class AuthComponents:
    """Objects owned by one application instance."""

    codec: JWTTokenCodec
    store: RevocationStore
    service: AuthenticationService
    sweeper: SweepJob | None = None


def build_store(app: Flask) -> tuple[RevocationStore, int]:
    """Return the configured revocation store and its sweep period in seconds."""
    backend = app.config["REVOCATION_BACKEND"]
    if backend == "memory":
        return MemoryRevocationStore(), int(app.config["REVOCATION_MEMORY_SWEEP_SECONDS"])

    period = int(app.config["REVOCATION_PERSISTENT_SWEEP_SECONDS"])
    if backend == "redis":
        from authcore.core.extensions import get_redis
        from authcore.infra.redis.redis_revocation_repository import RedisRevocationRepository

        return (
            PersistentRevocationStore(RedisRevocationRepository(get_redis()), backend="redis"),
            period,
        )

    from authcore.repositories.refresh_token import SQLAlchemyRevocationRepository

    return PersistentRevocationStore(SQLAlchemyRevocationRepository(), backend="database"), period


def init_app(app: Flask) -> AuthComponents:
    """Create codec, store, service and (optionally) the sweep job for ``app``.

    The sweep job runs each pass inside ``app.app_context()`` so the database
    backend has a session off-request. It is stopped by :func:`shutdown_auth`,
    which is also registered with :mod:`atexit`.
    """
    from authcore.repositories.user import SQLAlchemyUserDirectory

    access_ttl, refresh_ttl = token_ttls(app.config)
    codec = JWTTokenCodec.from_config(
        AuthTokenConfig(
            secret=app.config["JWT_SECRET_KEY"],
            access_expires=access_ttl,
            refresh_expires=refresh_ttl,
            algorithm=app.config.get("JWT_ALGORITHM", "HS256"),
        )
    )
    store, period = build_store(app)
    service = AuthenticationService(
        users=SQLAlchemyUserDirectory(),
        passwords=WerkzeugPasswordVerifier(),
        codec=codec,
        store=store,
    )

    components = AuthComponents(codec=codec, store=store, service=service)
    app.extensions[EXTENSION_KEY] = components

    if app.config.get("REVOCATION_SWEEP_ENABLED", False):
        components.sweeper = SweepJob(
            store.sweep,
            interval=period,
            name=f"revocation-sweep-{app.config['REVOCATION_BACKEND']}",
            context_factory=app.app_context,
        )
        components.sweeper.start()
        atexit.register(shutdown_auth, app)

    logger.info(
        "auth engine ready",
        extra={"backend": app.config["REVOCATION_BACKEND"], "interval": period},
    )
    return components


def get_auth_components(app: Flask | None = None) -> AuthComponents:
    """Return the components attached to ``app`` (default: ``current_app``)."""
    target = app or current_app
    try:
        return cast(AuthComponents, target.extensions[EXTENSION_KEY])
    except KeyError as exc:
        raise RuntimeError("Auth engine is not initialized. Call init_app() first.") from exc


def get_auth_service() -> AuthenticationService:
    """Return the application's :class:`AuthenticationService`."""
    return get_auth_components().service


def shutdown_auth(app: Flask) -> None:
    """Stop the background sweep job of ``app`` if one is running."""
    components = app.extensions.get(EXTENSION_KEY)
    if components is not None and components.sweeper is not None:
        components.sweeper.stop()
