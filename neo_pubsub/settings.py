"""Runtime settings for neo-pubsub.

Values come from environment variables (case-insensitive) or a ``.env``
file. The bus endpoint is resolved once at startup by the factories in
``neo_pubsub.bus``; nothing re-reads settings per message.
"""

from typing import Optional, TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from neo_pubsub.protocols import LoggerProtocol

_BUS_BACKENDS = ("redis", "memory")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Publisher, relay and gateway configuration."""

    # =========================================================================
    # BUS CONFIGURATION
    # =========================================================================
    bus_backend: str = "redis"  # Options: redis | memory

    redis_host: str = "localhost"
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_db: int = Field(default=0, ge=0)
    redis_password: Optional[str] = None

    # Upper bound on how long a single publish may block the commit path
    publish_timeout_seconds: float = Field(default=2.0, ge=0.05, le=60.0)

    # =========================================================================
    # RELAY CONFIGURATION
    # =========================================================================
    relay_reconnect_delay: float = Field(default=2.0, ge=0.01, le=300.0)
    relay_max_reconnect_delay: float = Field(default=60.0, ge=0.01, le=3600.0)

    # =========================================================================
    # WEBSOCKET CONFIGURATION
    # =========================================================================
    websocket_host: str = "0.0.0.0"
    websocket_port: int = Field(default=8000, ge=1, le=65535)
    websocket_send_timeout: float = Field(default=30.0, ge=0.1, le=300.0)

    # =========================================================================
    # LOGGING
    # =========================================================================
    log_level: str = "INFO"
    log_json: bool = True

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("bus_backend", mode="after")
    @classmethod
    def validate_bus_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in _BUS_BACKENDS:
            raise ValueError(f"Invalid bus backend: {v}. Must be one of {_BUS_BACKENDS}")
        return v

    @field_validator("redis_host", mode="after")
    @classmethod
    def validate_redis_host(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("redis_host must not be empty")
        return v.strip()

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {_LOG_LEVELS}")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # =========================================================================
    # HELPER METHODS
    # =========================================================================
    def get_redis_url(self) -> str:
        """Build the Redis connection URL."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    def log_bus_config(self, logger: "LoggerProtocol") -> None:
        """Log the bus endpoint (never the password)."""
        logger.info(
            "bus_config",
            backend=self.bus_backend,
            host=self.redis_host,
            port=self.redis_port,
            db=self.redis_db,
            publish_timeout_seconds=self.publish_timeout_seconds,
        )


# =============================================================================
# GLOBAL SETTINGS (Lazy Initialization)
# =============================================================================

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance.

    Creates a new Settings instance lazily if none exists.
    Prefer dependency injection over this global getter for testability.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings_instance: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings_instance


def reset_settings() -> None:
    """Reset the global settings instance.

    Forces re-creation on next get_settings() call.
    """
    global _settings
    _settings = None


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings


class _SettingsProxy:
    """Lazy proxy for settings singleton."""

    def __getattr__(self, name):
        return getattr(get_settings(), name)


settings = _SettingsProxy()


__all__ = [
    "Settings",
    "get_settings",
    "set_settings",
    "reset_settings",
    "reload_settings",
    "settings",
]
