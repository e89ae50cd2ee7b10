"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (UNIVERSALDB__SECTION__KEY)
3. Project YAML (.universaldb/config.yaml)
4. Global YAML (~/.config/universaldb/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    UNIVERSALDB__<SECTION>__<KEY>=<VALUE>

Examples:
    UNIVERSALDB__LOGGING__LEVEL=DEBUG
    UNIVERSALDB__DATABASE__PATH=/var/lib/app/universal.db
    UNIVERSALDB__DATABASE__MAX_RETRIES=5
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        UNIVERSALDB__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every row written.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DatabaseConfig(BaseModel):
    """Database connection configuration.

    Env vars:
        UNIVERSALDB__DATABASE__PATH: SQLite file holding the four tables
        UNIVERSALDB__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
        UNIVERSALDB__DATABASE__MAX_RETRIES: Max retry attempts for locked DB
    """

    path: str = Field(
        default="universal.db",
        description="SQLite database file. Relative paths resolve against the project root.",
    )
    busy_timeout_ms: int = Field(
        default=30000,
        description="SQLite busy timeout (ms). How long to wait for locks.",
    )
    max_retries: int = Field(
        default=3,
        description="Max retry attempts when a write transaction cannot take the lock.",
    )
    retry_base_delay_sec: float = Field(
        default=0.1,
        description="Base delay between retries (exponential backoff).",
    )
    retry_max_delay_sec: float = Field(
        default=2.0,
        description="Upper bound for a single backoff delay.",
    )

    @field_validator("busy_timeout_ms", "max_retries")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Must be >= 0, got {v}")
        return v

    def resolve_path(self, root: Path) -> Path:
        """Absolute database path, anchoring relative paths at ``root``."""
        path = Path(self.path).expanduser()
        return path if path.is_absolute() else root / path


class UniversalDbConfig(BaseModel):
    """Root configuration for UniversalDb."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
