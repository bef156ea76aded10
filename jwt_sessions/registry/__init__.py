"""Session registry backends and collaborator protocols."""
from jwt_sessions.registry.protocols import IdGenerator, Registry, Signer, UUIDGenerator
from jwt_sessions.registry.redis_registry import RedisRegistry

__all__ = [
    "IdGenerator",
    "RedisRegistry",
    "Registry",
    "Signer",
    "UUIDGenerator",
]
