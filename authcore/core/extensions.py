"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
redis_client: redis.Redis | None = None


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy and, for the ``redis`` revocation backend, Redis.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`authcore.models` package so the metadata knows every table.

    Notes
    -----
    The Redis client is built with ``socket_timeout`` and
    ``socket_connect_timeout`` from ``REDIS_SOCKET_TIMEOUT`` so a stalled
    server turns into a ``RedisError`` instead of a hung request.
    """
    db.init_app(app)

    # Ensure models are imported so metadata is complete
    from authcore import models as _models  # noqa: F401

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url or app.config.get("REVOCATION_BACKEND") != "redis":
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    timeout = float(app.config.get("REDIS_SOCKET_TIMEOUT", 2.0))
    redis_client = redis.Redis.from_url(
        redis_url, socket_timeout=timeout, socket_connect_timeout=timeout
    )
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return redis_client
