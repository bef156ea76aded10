"""Core session logic."""
from jwt_sessions.core.session_manager import SessionTokenManager

__all__ = [
    "SessionTokenManager",
]
