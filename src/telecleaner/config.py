import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import redis.asyncio as redis
from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis (persistent key-value store)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Remote gateway
    gateway_base_url: str = os.getenv("GATEWAY_BASE_URL", "")
    gateway_api_key: str = os.getenv("GATEWAY_API_KEY", "")
    gateway_timeout: float = float(os.getenv("GATEWAY_TIMEOUT", "30"))

    # Avatar cache
    avatar_cache_max_size: int = int(os.getenv("AVATAR_CACHE_MAX_SIZE", "200"))
    avatar_cache_max_age: int = int(os.getenv("AVATAR_CACHE_MAX_AGE", "2592000"))  # 30 days
    avatar_cache_memory_size: int = int(os.getenv("AVATAR_CACHE_MEMORY_SIZE", "50"))
    avatar_cache_eviction_fraction: float = float(os.getenv("AVATAR_CACHE_EVICTION_FRACTION", "0.2"))
    avatar_cache_check_interval: int = int(os.getenv("AVATAR_CACHE_CHECK_INTERVAL", "86400"))  # 24 hours

    # Hydration
    hydration_batch_size: int = int(os.getenv("HYDRATION_BATCH_SIZE", "15"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def gateway_configured(self) -> bool:
        """Check if the remote gateway can be called.

        Returns:
            True if both the base URL and API key are set, False otherwise
        """
        return bool(self.gateway_base_url and self.gateway_api_key)

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.avatar_cache_max_size <= 0:
            raise ValueError("AVATAR_CACHE_MAX_SIZE must be positive")

        if self.avatar_cache_max_age <= 0:
            raise ValueError("AVATAR_CACHE_MAX_AGE must be positive")

        if not 0 < self.avatar_cache_memory_size <= self.avatar_cache_max_size:
            raise ValueError(
                f"AVATAR_CACHE_MEMORY_SIZE must be between 1 and AVATAR_CACHE_MAX_SIZE "
                f"({self.avatar_cache_max_size}), got {self.avatar_cache_memory_size}"
            )

        if not 0 < self.avatar_cache_eviction_fraction <= 1:
            raise ValueError("AVATAR_CACHE_EVICTION_FRACTION must be in (0, 1]")

        if self.hydration_batch_size <= 0:
            raise ValueError("HYDRATION_BATCH_SIZE must be positive")

        if self.gateway_timeout <= 0:
            raise ValueError("GATEWAY_TIMEOUT must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def configure_logging(level: str | None = None) -> None:
    """Install the application log format."""
    logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=level or settings.log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_redis_client() -> redis.Redis:
    """Create an asyncio Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=True,
    )
