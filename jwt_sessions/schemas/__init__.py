"""Pydantic schemas package."""
from jwt_sessions.schemas.options import (
    CompleteToken,
    DecodeOptions,
    SignOptions,
    VerifyOptions,
)

__all__ = [
    "CompleteToken",
    "DecodeOptions",
    "SignOptions",
    "VerifyOptions",
]
