"""
Client configuration using Pydantic settings.

Usage:
    from civic_sync.config import get_settings
    settings = get_settings()
    api_config = settings.api_config

For endpoint paths and messages, import from civic_sync.constants:
    from civic_sync.constants import API_ENDPOINTS, ERROR_MESSAGES
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from civic_sync.models.enums import Environment

if TYPE_CHECKING:
    from civic_sync.session import TokenStore


@dataclass(frozen=True)
class ApiConfig:
    """Resolved transport configuration for one API client."""

    base_url: str
    timeout: float
    retry_attempts: int
    backoff_unit: float = 1.0
    retry_writes: bool = True


# Environment profiles: base URL, timeout (seconds), attempts per request
ENVIRONMENT_PROFILES: dict[Environment, ApiConfig] = {
    Environment.DEVELOPMENT: ApiConfig(
        base_url="http://10.0.2.2:3000/api",
        timeout=10.0,
        retry_attempts=3,
    ),
    Environment.PRODUCTION: ApiConfig(
        base_url="https://your-production-api.com/api",
        timeout=15.0,
        retry_attempts=2,
    ),
    Environment.TESTING: ApiConfig(
        base_url="http://localhost:3000/api",
        timeout=5.0,
        retry_attempts=1,
    ),
}


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables and .env file.

    The environment profile supplies defaults; any CIVIC_API_* variable
    overrides the matching profile value.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    debug: bool = Field(default=False, validation_alias="DEBUG")
    env: Environment = Field(default=Environment.DEVELOPMENT, validation_alias="CIVIC_ENV")
    log_level: str = Field(default="INFO", validation_alias="CIVIC_LOG_LEVEL")

    # API transport overrides
    api_base_url: Optional[str] = Field(default=None, validation_alias="CIVIC_API_BASE_URL")
    api_timeout_seconds: Optional[float] = Field(default=None, gt=0, validation_alias="CIVIC_API_TIMEOUT")
    api_retry_attempts: Optional[int] = Field(default=None, validation_alias="CIVIC_API_RETRY_ATTEMPTS")
    retry_backoff_unit: float = Field(default=1.0, ge=0, validation_alias="CIVIC_RETRY_BACKOFF_UNIT")

    # Writes are retried like reads unless disabled; see DESIGN.md on duplicate votes
    retry_writes: bool = Field(default=True, validation_alias="CIVIC_RETRY_WRITES")

    # Session persistence
    token_store_path: Optional[str] = Field(default=None, validation_alias="CIVIC_TOKEN_STORE")

    @field_validator("api_retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: Optional[int]) -> Optional[int]:
        """Attempts per request must stay within 1..3."""
        if v is not None and not 1 <= v <= 3:
            raise ValueError(f"CIVIC_API_RETRY_ATTEMPTS must be between 1 and 3 (got {v})")
        return v

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else v

    @property
    def profile(self) -> ApiConfig:
        """Profile defaults for the configured environment."""
        return ENVIRONMENT_PROFILES.get(self.env, ENVIRONMENT_PROFILES[Environment.DEVELOPMENT])

    @property
    def api_config(self) -> ApiConfig:
        """Resolve overrides over the environment profile."""
        profile = self.profile
        return ApiConfig(
            base_url=self.api_base_url or profile.base_url,
            timeout=self.api_timeout_seconds or profile.timeout,
            retry_attempts=self.api_retry_attempts or profile.retry_attempts,
            backoff_unit=self.retry_backoff_unit,
            retry_writes=self.retry_writes,
        )

    def token_store(self) -> "TokenStore":
        """File-backed store when CIVIC_TOKEN_STORE is set, otherwise in-memory."""
        from civic_sync.session import FileTokenStore, MemoryTokenStore

        if self.token_store_path:
            return FileTokenStore(self.token_store_path)
        return MemoryTokenStore()


@lru_cache
def get_settings() -> Settings:
    """Get cached client settings."""
    return Settings()


__all__ = ["ApiConfig", "ENVIRONMENT_PROFILES", "Settings", "get_settings"]
