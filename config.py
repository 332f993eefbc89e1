"""Settings for the web frontend, read from XYPAI_WEB_* environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Frontend settings.

    Example: XYPAI_WEB_API_BASE=http://gateway:8080, XYPAI_WEB_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="XYPAI_WEB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base: str = "http://localhost:8080"
    secret_key: str = "super-secret-key"  # override in production
    request_timeout_ms: int = 10000
    repeat_submit_interval_ms: int = 1000
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
