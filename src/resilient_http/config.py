"""
Configuration settings for the resilient HTTP layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Resilient HTTP"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Transport ===
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # === Retry classification ===
    RETRYABLE_STATUSES: list[int] = [408, 425, 429, 500, 502, 503, 504]
    RETRYABLE_IO_PREDICATES: list[str] = ["client_timeout", "connect_timeout", "unknown_host"]
    SENSITIVE_HEADERS: list[str] = ["authorization", "proxy-authorization", "cookie", "set-cookie"]

    # === Backoff ===
    BACKOFF_STRATEGY: str = "fixed"  # fixed | exponential
    BACKOFF_INTERVAL_SECONDS: float = 0.5  # fixed interval, or initial interval for exponential
    BACKOFF_MULTIPLIER: float = 2.0
    BACKOFF_MAX_INTERVAL_SECONDS: float = 30.0
    BACKOFF_MAX_ATTEMPTS: int = 3  # retries after the first attempt

    # === Load balancing ===
    FAILED_ENDPOINT_TTL_SECONDS: float = 30.0
    FAILED_ENDPOINT_SWEEP_INTERVAL_SECONDS: float = 10.0

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True

    @field_validator("RETRYABLE_IO_PREDICATES")
    @classmethod
    def _known_predicates(cls, value: list[str]) -> list[str]:
        known = {"client_timeout", "connect_timeout", "unknown_host", "any"}
        normalized = [name.strip().lower() for name in value]
        unknown = sorted(set(normalized) - known)
        if unknown:
            raise ValueError(f"Unknown retryable IO predicate(s): {unknown}")
        return normalized

    @field_validator("BACKOFF_STRATEGY")
    @classmethod
    def _known_backoff(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"fixed", "exponential"}:
            raise ValueError(f"BACKOFF_STRATEGY must be 'fixed' or 'exponential', got {value!r}")
        return normalized

    @field_validator("BACKOFF_INTERVAL_SECONDS", "FAILED_ENDPOINT_TTL_SECONDS")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("FAILED_ENDPOINT_SWEEP_INTERVAL_SECONDS")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be > 0")
        return value


# Global settings instance
settings = Settings()
