"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Binance Futures API
    binance_base_url: str = "https://fapi.binance.com"
    binance_api_key: str = ""
    request_timeout: float = 30.0
    calls_per_minute: int = 1200

    # Retry policy for transient failures (network errors, 5xx)
    max_retries: int = 2
    retry_base_delay: float = 1.0  # seconds, doubled per attempt
    retry_max_delay: float = 5.0

    # Candles
    candle_limit: int = 100
    intervals: list[str] = ["3m", "15m", "1h"]
    default_timeframe: str = "3m"

    # Order book
    depth_limit: int = 50
    depth_display_limit: int = 50
    wall_threshold_percent: float = 50.0
    depth_refresh_seconds: float = 2.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
