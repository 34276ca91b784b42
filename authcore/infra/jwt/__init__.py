from __future__ import annotations

from .pyjwt_token_codec import JWTTokenCodec

__all__ = ["JWTTokenCodec"]
