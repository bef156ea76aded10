"""Protocol definitions for the session manager's collaborators.

These protocols enable type-safe mocking in tests and decouple the
session manager from concrete Redis and python-jose implementations.
"""

import uuid
from collections.abc import Mapping
from typing import Any, Protocol

from jwt_sessions.schemas.options import (
    CompleteToken,
    DecodeOptions,
    SignOptions,
    VerifyOptions,
)


class Registry(Protocol):
    """Key-value store tracking live sessions.

    Each call must be atomic on its own; nothing more is assumed.
    """

    async def set(self, key: str, value: str, ttl: int | None = None) -> None: ...

    async def exists(self, key: str) -> bool: ...

    async def delete(self, key: str) -> None: ...

    async def expire(self, key: str, ttl: int) -> bool: ...


class Signer(Protocol):
    """Cryptographic JWT codec."""

    async def sign(
        self, claims: Mapping[str, Any], secret: str, options: SignOptions | None = None
    ) -> str: ...

    async def verify(
        self, token: str, secret: str, options: VerifyOptions | None = None
    ) -> dict[str, Any]: ...

    def decode(
        self, token: str, options: DecodeOptions | None = None
    ) -> dict[str, Any] | CompleteToken | None: ...


class IdGenerator(Protocol):
    """Source of globally unique session ids."""

    def new_id(self) -> str: ...


class UUIDGenerator:
    """Random UUID4 ids in canonical 36-character form."""

    def new_id(self) -> str:
        return str(uuid.uuid4())
