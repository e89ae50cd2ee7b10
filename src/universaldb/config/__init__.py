"""Config module exports."""

from universaldb.config.loader import get_database_path, load_config
from universaldb.config.models import (
    DatabaseConfig,
    LoggingConfig,
    LogOutputConfig,
    UniversalDbConfig,
)

__all__ = [
    "load_config",
    "get_database_path",
    "UniversalDbConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
