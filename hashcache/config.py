"""
Configuration Management Module

Configures connection and codec parameters via environment variables or .env file.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Library Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    """

    # Application Config
    APP_NAME: str = "hashcache"
    DEBUG: bool = False

    # Redis Config
    # Connection URL used when no connection group is configured
    REDIS_URL: str = "redis://localhost:6379/0"
    # Comma-separated list of Redis URLs forming a connection group.
    # Record keys are routed to one member by a stable hash of the key.
    # Example: "redis://cache-a:6379/0,redis://cache-b:6379/0"
    REDIS_GROUP_URLS: str = ""
    # Socket timeout (seconds), None leaves the redis-py default
    REDIS_SOCKET_TIMEOUT: Optional[float] = None

    # Codec Config
    # Default value codec for hash fields: "json" or "pickle"
    VALUE_CODEC: Literal["json", "pickle"] = "json"

    # Tracing Config
    # Log every hash command with its arguments, reply and latency
    TRACE_ENABLED: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def redis_urls(self) -> list[str]:
        """
        Resolve the list of Redis URLs to connect to

        Returns:
            list[str]: Group URLs when configured, otherwise the single REDIS_URL
        """
        urls = [url.strip() for url in self.REDIS_GROUP_URLS.split(",") if url.strip()]
        return urls or [self.REDIS_URL]


@lru_cache()
def get_settings() -> Settings:
    """
    Get library configuration (Singleton)

    Uses lru_cache to ensure configuration is loaded only once.

    Returns:
        Settings: Configuration instance
    """
    return Settings()
