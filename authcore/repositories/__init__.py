from authcore.repositories.refresh_token import (
    RefreshTokenRepository,
    SQLAlchemyRevocationRepository,
)
from authcore.repositories.user import SQLAlchemyUserDirectory, UserRepository

__all__ = [
    "RefreshTokenRepository",
    "SQLAlchemyRevocationRepository",
    "SQLAlchemyUserDirectory",
    "UserRepository",
]
