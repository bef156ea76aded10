"""Library configuration using pydantic-settings."""

import warnings
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jwt_sessions.constants import DEFAULT_ALGORITHM, DEFAULT_SESSION_PREFIX
from jwt_sessions.utils.durations import to_seconds


class Settings(BaseSettings):
    """Settings loaded from ``JWT_SESSIONS_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="JWT_SESSIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "staging", "production"] = "development"

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_socket_timeout: float = 5.0

    # Session registry
    session_prefix: str = DEFAULT_SESSION_PREFIX
    session_expires_key_in: int | str | None = Field(
        default=None,
        description="Default registry-only expiry for tokens signed without expires_in.",
    )

    # JWT
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="JWT signing secret. MUST be overridden in production.",
    )
    jwt_algorithm: str = DEFAULT_ALGORITHM

    # Observability
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("session_expires_key_in", mode="before")
    @classmethod
    def validate_expires_key_in(cls, v: int | str | None) -> int | str | None:
        """Reject unparseable durations at startup instead of at first sign()."""
        if v is None or v == "":
            return None
        if isinstance(v, str) and v.strip().isdigit():
            return int(v)
        to_seconds(v)
        return v

    @field_validator("session_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not v:
            raise ValueError("session_prefix must not be empty")
        return v

    @model_validator(mode="after")
    def enforce_jwt_secret_strength(self) -> "Settings":
        """Enforce JWT secret requirements based on environment.

        - Non-dev: reject the placeholder secret AND require >= 32 characters.
        - Dev: emit a warning for short secrets so local runs aren't blocked.
        """
        if not self.is_development:
            if self.jwt_secret_key == "CHANGE-ME-IN-PRODUCTION":
                raise ValueError(
                    "jwt_secret_key must be changed from its default value "
                    "in staging/production environments"
                )
            if len(self.jwt_secret_key) < 32:
                raise ValueError(
                    "jwt_secret_key must be at least 32 characters "
                    "in staging/production environments"
                )
        elif len(self.jwt_secret_key) < 32:
            warnings.warn(
                "jwt_secret_key is shorter than 32 characters; "
                "use a strong, randomly-generated secret in production",
                UserWarning,
                stacklevel=2,
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
