from __future__ import annotations

from .redis_revocation_repository import RedisRevocationRepository

__all__ = ["RedisRevocationRepository"]
