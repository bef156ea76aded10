"""Factories wiring the session manager to its Redis registry."""

import logging

from redis.asyncio import Redis

from jwt_sessions.config import Settings, get_settings
from jwt_sessions.core.session_manager import SessionTokenManager
from jwt_sessions.registry.redis_registry import RedisRegistry
from jwt_sessions.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings | None = None) -> None:
    """Apply ``log_level`` / ``log_format`` from *settings* to structlog."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)


def create_redis(settings: Settings) -> Redis:
    """Create the async Redis client."""
    return Redis.from_url(
        str(settings.redis_url),
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
    )


def create_session_manager(
    redis: Redis | None = None,
    settings: Settings | None = None,
) -> SessionTokenManager:
    """Build a ``SessionTokenManager`` over *redis*, or a client from *settings*.

    The caller owns the Redis client and must ``aclose()`` it on shutdown.
    """
    settings = settings or get_settings()
    if redis is None:
        redis = create_redis(settings)
    logger.info(
        "Session registry ready (prefix=%s, default expires_key_in=%s)",
        settings.session_prefix,
        settings.session_expires_key_in,
    )
    return SessionTokenManager.from_settings(RedisRegistry(redis), settings)
