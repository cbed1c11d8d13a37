"""Configuration settings for the my-memory MCP server.

This module provides Pydantic Settings for configuration management.
Settings are loaded from environment variables with the MY_MEMORY_ prefix
(or a .env file). The database path also honours the plain DATABASE_PATH
variable used by older deployments.
"""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from my_memory.constants import DEFAULT_BUSY_TIMEOUT_MS, DEFAULT_DATABASE_PATH


class MemorySettings(BaseSettings):
    """Configuration settings for the my-memory MCP server.

    Attributes:
        database_path: Path to the SQLite database file
        busy_timeout_ms: How long a writer waits for the database lock
        log_level: Logging level
    """

    model_config = SettingsConfigDict(
        env_prefix="MY_MEMORY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Allow extra env vars without error
        populate_by_name=True,
    )

    database_path: Path = Field(
        default=Path(DEFAULT_DATABASE_PATH),
        validation_alias=AliasChoices("MY_MEMORY_DATABASE_PATH", "DATABASE_PATH"),
        description="Path to SQLite database",
    )
    busy_timeout_ms: int = Field(
        default=DEFAULT_BUSY_TIMEOUT_MS,
        ge=0,
        description="Milliseconds to wait for the write lock before failing",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    def get_database_path(self) -> Path:
        """Get the database path, expanding user home.

        ':memory:' is passed through untouched.
        """
        if str(self.database_path) == ":memory:":
            return self.database_path
        return self.database_path.expanduser().resolve()
