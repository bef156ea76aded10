"""Shared constants used across the package."""

# Every registry key is ``<prefix><jti>``
DEFAULT_SESSION_PREFIX = "session:"

# Value stored under a live session key; only its presence matters
REGISTRY_MARKER = "true"

DEFAULT_ALGORITHM = "HS256"

# Accepted by verify() when the caller does not restrict algorithms
DEFAULT_VERIFY_ALGORITHMS = ("HS256", "HS384", "HS512")
