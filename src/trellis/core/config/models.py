"""
Configuration data models for trellis.

These models define the structure of .trellis.json and
~/.config/trellis/config.json files, with validation via Pydantic.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CacheConfig(BaseModel):
    """
    Dashboard cache settings.

    The TTL of dashboard aggregates is fixed and not configured here.
    """

    enabled: bool = Field(
        default=True,
        description="Cache dashboard aggregates (disable to always recompute)",
    )
    backend: str = Field(
        default="memory",
        pattern="^(memory|redis)$",
        description="Cache backend: 'memory' (single process) or 'redis' (shared)",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL, used when backend is 'redis'",
    )


class StoreConfig(BaseModel):
    """Project/task storage settings."""

    backend: str = Field(
        default="memory",
        pattern="^(memory|sqlite)$",
        description="Store backend: 'memory' or 'sqlite'",
    )
    sqlite_path: Path = Field(
        default=Path(".trellis") / "trellis.db",
        description="SQLite database file, used when backend is 'sqlite'",
    )


class ServerConfig(BaseModel):
    """HTTP server settings for `trellis serve`."""

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8080, ge=1, le=65535, description="Port to listen on")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Origins allowed by the CORS middleware",
    )


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="WARNING", description="Root log level")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept any case and validate against logging's level names."""
        level = str(v).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level


class TrellisConfig(BaseModel):
    """
    Top-level trellis configuration.

    Example:
        >>> config = TrellisConfig()
        >>> config.cache.backend
        'memory'
        >>> config.store.backend
        'memory'
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(
        extra="ignore",  # Unknown keys in config files are tolerated
    )
