"""Revocable JWT sessions backed by a Redis registry."""
from jwt_sessions.core.session_manager import SessionTokenManager
from jwt_sessions.errors import JsonWebTokenError, NotBeforeError, TokenExpiredError
from jwt_sessions.registry.redis_registry import RedisRegistry
from jwt_sessions.schemas.options import CompleteToken, DecodeOptions, SignOptions, VerifyOptions

__all__ = [
    "CompleteToken",
    "DecodeOptions",
    "JsonWebTokenError",
    "NotBeforeError",
    "RedisRegistry",
    "SessionTokenManager",
    "SignOptions",
    "TokenExpiredError",
    "VerifyOptions",
]
