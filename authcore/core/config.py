"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

from authcore.infra.jwt.pyjwt_token_codec import SUPPORTED_ALGORITHMS

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Signing keys that ship in sample env files and docs; never accepted.
INSECURE_JWT_SECRETS: Final[frozenset[str]] = frozenset(
    {
        "CHANGE_ME_JWT",
        "your-super-secret-key-change-in-production",
        "secret",
        "changeme",
    }
)

REVOCATION_BACKENDS: Final[frozenset[str]] = frozenset({"memory", "database", "redis"})


# Load .env in development (no-op when the file is missing)
load_dotenv()


class ConfigError(RuntimeError):
    """Raised when the loaded configuration cannot run the auth engine safely."""


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    JWT_SECRET_KEY: str
        Symmetric key used to sign and verify tokens (HS256). Must be set and
        must not be one of :data:`INSECURE_JWT_SECRETS`.
    JWT_ALGORITHM: str
        Signing algorithm. Only HMAC algorithms are supported.
    JWT_ACCESS_TOKEN_TTL_MIN: int
        Access token lifetime in minutes.
    JWT_REFRESH_TOKEN_TTL_DAYS: int
        Refresh token lifetime in days.
    REVOCATION_BACKEND: str
        ``memory`` (process-local), ``database`` (SQLAlchemy) or ``redis``.
    REVOCATION_SWEEP_ENABLED: bool
        Start the periodic sweep job when the app is created.
    REVOCATION_MEMORY_SWEEP_SECONDS: int
        Sweep period for the in-memory store.
    REVOCATION_PERSISTENT_SWEEP_SECONDS: int
        Sweep period for the persistent store.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    SQLALCHEMY_ENGINE_OPTIONS: dict
        Engine options; ``pool_timeout`` bounds the wait for a connection.
    REDIS_URL: str | None
        Redis connection URL (required for the ``redis`` backend).
    REDIS_SOCKET_TIMEOUT: float
        Seconds before a Redis command or connect attempt is abandoned.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    USE_PROXYFIX: bool
        Trust one hop of ``X-Forwarded-*`` headers (client IP metadata).

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    # Secrets / tokens
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_TTL_MIN = env_int("JWT_ACCESS_TOKEN_TTL_MIN", 15)
    JWT_REFRESH_TOKEN_TTL_DAYS = env_int("JWT_REFRESH_TOKEN_TTL_DAYS", 7)

    # Revocation
    REVOCATION_BACKEND = os.getenv("REVOCATION_BACKEND", "database").strip().lower()
    REVOCATION_SWEEP_ENABLED = env_bool("REVOCATION_SWEEP_ENABLED", True)
    REVOCATION_MEMORY_SWEEP_SECONDS = env_int("REVOCATION_MEMORY_SWEEP_SECONDS", 300)
    REVOCATION_PERSISTENT_SWEEP_SECONDS = env_int("REVOCATION_PERSISTENT_SWEEP_SECONDS", 3600)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    SQLALCHEMY_ENGINE_OPTIONS: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_timeout": env_int("DB_POOL_TIMEOUT_SEC", 5),
    }

    # Redis
    REDIS_URL = os.getenv("REDIS_URL")
    REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "2.0"))

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & proxy
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and uses the in-memory revocation store so
    a local run does not need Redis.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REVOCATION_BACKEND = os.getenv("REVOCATION_BACKEND", "memory").strip().lower()


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never starts background sweeps; tests drive ``sweep()`` explicitly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS: dict[str, Any] = {}
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True
    REVOCATION_BACKEND = "memory"
    REVOCATION_SWEEP_ENABLED = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled; revocations are persisted so a
    restart does not silently un-revoke tokens.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_jwt_secret(secret: str | None) -> str:
    """Return ``secret`` when it is usable for signing, else raise.

    :param secret: Candidate signing key.
    :raises ConfigError: If the key is missing, blank, or a known default.
    """
    if secret is None or not str(secret).strip():
        raise ConfigError("JWT_SECRET_KEY environment variable is not set")
    if secret in INSECURE_JWT_SECRETS:
        raise ConfigError(
            "JWT_SECRET_KEY is set to a default insecure value. Please change it in production"
        )
    return secret


def validate_config(config: Mapping[str, Any]) -> None:
    """Fail fast on settings the auth engine cannot run with.

    :param config: Flask config mapping (or any mapping with the same keys).
    :raises ConfigError: On an unusable secret, algorithm, TTL, or backend.
    """
    validate_jwt_secret(config.get("JWT_SECRET_KEY"))

    algorithm = str(config.get("JWT_ALGORITHM", "HS256"))
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ConfigError(
            f"Unsupported JWT_ALGORITHM {algorithm!r}; expected one of {sorted(SUPPORTED_ALGORITHMS)}"
        )

    if int(config.get("JWT_ACCESS_TOKEN_TTL_MIN", 0)) <= 0:
        raise ConfigError("JWT_ACCESS_TOKEN_TTL_MIN must be positive")
    if int(config.get("JWT_REFRESH_TOKEN_TTL_DAYS", 0)) <= 0:
        raise ConfigError("JWT_REFRESH_TOKEN_TTL_DAYS must be positive")

    backend = str(config.get("REVOCATION_BACKEND", "")).lower()
    if backend not in REVOCATION_BACKENDS:
        raise ConfigError(
            f"REVOCATION_BACKEND must be one of {sorted(REVOCATION_BACKENDS)}, got {backend!r}"
        )
    if backend == "redis" and not config.get("REDIS_URL"):
        raise ConfigError("REVOCATION_BACKEND=redis requires REDIS_URL")


def token_ttls(config: Mapping[str, Any]) -> tuple[timedelta, timedelta]:
    """Return ``(access_ttl, refresh_ttl)`` derived from ``config``."""
    return (
        timedelta(minutes=int(config["JWT_ACCESS_TOKEN_TTL_MIN"])),
        timedelta(days=int(config["JWT_REFRESH_TOKEN_TTL_DAYS"])),
    )
