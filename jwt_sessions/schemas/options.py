"""Pydantic schemas for sign / verify / decode options.

Field names are snake_case; the camelCase spelling used by JavaScript JWT
libraries (``expiresIn``, ``expiresKeyIn``, ``noTimestamp``) is accepted
as an alias. Keys no field recognises land in the model's extra bag and
are handed to the signer, which decides whether it supports them.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jwt_sessions.constants import DEFAULT_ALGORITHM, DEFAULT_VERIFY_ALGORITHMS
from jwt_sessions.utils.durations import Duration

_OPTIONS_CONFIG = ConfigDict(
    extra="allow",
    alias_generator=to_camel,
    populate_by_name=True,
)


class SignOptions(BaseModel):
    """Options for ``SessionTokenManager.sign``."""

    model_config = _OPTIONS_CONFIG

    algorithm: str = DEFAULT_ALGORITHM
    expires_in: Duration | None = None
    # Registry-only expiry; never reaches the signer
    expires_key_in: Duration | None = None
    not_before: Duration | None = None
    jwtid: str | None = None
    audience: str | list[str] | None = None
    issuer: str | None = None
    subject: str | None = None
    headers: dict[str, Any] | None = None
    no_timestamp: bool = False

    @property
    def extras(self) -> dict[str, Any]:
        """Keys no field recognises."""
        return dict(self.model_extra or {})


class VerifyOptions(BaseModel):
    """Options for ``SessionTokenManager.verify``."""

    model_config = _OPTIONS_CONFIG

    algorithms: list[str] = Field(default_factory=lambda: list(DEFAULT_VERIFY_ALGORITHMS))
    audience: str | list[str] | None = None
    issuer: str | list[str] | None = None
    subject: str | None = None
    jwtid: str | None = None
    leeway: int = Field(default=0, ge=0, alias="clockTolerance")
    ignore_expiration: bool = False
    ignore_not_before: bool = False
    max_age: Duration | None = None

    @property
    def extras(self) -> dict[str, Any]:
        """Keys no field recognises."""
        return dict(self.model_extra or {})


class DecodeOptions(BaseModel):
    """Options for ``decode``; ``complete`` returns header and signature too."""

    model_config = _OPTIONS_CONFIG

    complete: bool = False


class CompleteToken(BaseModel):
    """A decoded token split into its three parts."""

    header: dict[str, Any]
    payload: dict[str, Any]
    signature: str
