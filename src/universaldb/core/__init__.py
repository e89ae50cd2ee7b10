"""Core module exports."""

from universaldb.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    OrmError,
    StoreError,
    UniversalDbError,
)
from universaldb.core.logging import (
    configure_logging,
    get_log_file_path,
    get_logger,
    get_operation_id,
    operation_scope,
)

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "OrmError",
    "StoreError",
    "UniversalDbError",
    # Logging
    "configure_logging",
    "get_log_file_path",
    "get_logger",
    "get_operation_id",
    "operation_scope",
]
