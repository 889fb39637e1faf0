"""Application settings using pydantic-settings."""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_ACTOR_LIMIT,
    DEFAULT_DESTINATION_LIMIT,
    DEFAULT_ENTROPY_MIN_LENGTH,
    DEFAULT_ENTROPY_THRESHOLD,
    DEFAULT_GLOBAL_LIMIT,
    DEFAULT_QUOTA_KEY_PREFIX,
    DEFAULT_REDIS_TIMEOUT,
    DEFAULT_WINDOW_SECONDS,
    QuotaScope,
)


class Settings(BaseSettings):
    """Application configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Encryption (the key itself is read through config.secrets)
    encryption_key: Optional[str] = None
    encryption_key_file: Optional[str] = None

    # Counter store
    redis_url: Optional[str] = None
    redis_timeout_seconds: float = DEFAULT_REDIS_TIMEOUT
    quota_key_prefix: str = DEFAULT_QUOTA_KEY_PREFIX

    # Quota budgets, points per window
    rate_limit_global: int = DEFAULT_GLOBAL_LIMIT
    rate_limit_per_actor: int = DEFAULT_ACTOR_LIMIT
    rate_limit_per_destination: int = DEFAULT_DESTINATION_LIMIT

    # Quota windows
    rate_limit_window_global: float = DEFAULT_WINDOW_SECONDS
    rate_limit_window_actor: float = DEFAULT_WINDOW_SECONDS
    rate_limit_window_destination: float = DEFAULT_WINDOW_SECONDS

    # Entropy pass
    entropy_threshold: float = DEFAULT_ENTROPY_THRESHOLD
    entropy_min_length: int = DEFAULT_ENTROPY_MIN_LENGTH

    # Extra detection rules (YAML)
    custom_patterns_file: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    @field_validator(
        "rate_limit_global", "rate_limit_per_actor", "rate_limit_per_destination"
    )
    @classmethod
    def validate_points(cls, v: int) -> int:
        """Budgets must admit at least one request per window."""
        if v < 1:
            raise ValueError("rate limit must be at least 1 point")
        return v

    @field_validator(
        "rate_limit_window_global",
        "rate_limit_window_actor",
        "rate_limit_window_destination",
        "redis_timeout_seconds",
    )
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be a positive number of seconds")
        return v

    @property
    def quota_limits(self) -> dict[QuotaScope, tuple[int, float]]:
        """(points, window seconds) for every quota scope."""
        return {
            QuotaScope.GLOBAL: (
                self.rate_limit_global,
                self.rate_limit_window_global,
            ),
            QuotaScope.ACTOR: (
                self.rate_limit_per_actor,
                self.rate_limit_window_actor,
            ),
            QuotaScope.DESTINATION: (
                self.rate_limit_per_destination,
                self.rate_limit_window_destination,
            ),
        }


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
