"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - Every setting can be overridden by a NETGUARD_* environment variable
    - get_settings() is cached (lru_cache): single instance per process
    - Delays and timeouts are configured in milliseconds, converted once here

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults mirror the per-operation defaults of OperationSpec
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NETGUARD_", env_file=".env", case_sensitive=False,
    )

    # Retry defaults for specs built from settings
    default_max_retries: int = 3
    default_initial_delay_ms: int = 1000
    default_backoff_factor: float = 2.0
    default_timeout_ms: int = 30_000
    max_delay_ms: int = 30_000
    jitter: bool = True

    # Replay queue: 0 keeps the drop-on-second-failure behaviour
    replay_max_requeues: int = 0

    # Alerts
    alert_locale: str = "en"
    alert_history_size: int = 50

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator(
        "default_max_retries", "default_initial_delay_ms",
        "max_delay_ms", "replay_max_requeues",
    )
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("default_timeout_ms")
    @classmethod
    def positive_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("default_backoff_factor")
    @classmethod
    def factor_at_least_one(cls, v: float) -> float:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @property
    def max_delay_seconds(self) -> float:
        return self.max_delay_ms / 1000

    def spec_defaults(self) -> dict:
        """Keyword defaults for OperationSpec built from these settings."""
        return {
            "max_retries": self.default_max_retries,
            "initial_delay": self.default_initial_delay_ms / 1000,
            "backoff_factor": self.default_backoff_factor,
            "timeout_per_attempt": self.default_timeout_ms / 1000,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
