"""UniversalDb error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Store (row-level storage outcomes)
- 4xxx: ORM (reflection, serialization, reconstruction)
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Store (3xxx)
    ITEM_NOT_FOUND = 3001
    DUPLICATE_CLASS_NAME = 3002
    MYSTERY = 3003  # any other storage failure (FK violation, I/O, ...)

    # ORM (4xxx)
    UNRESOLVABLE_TYPE = 4001
    UNSUPPORTED_VALUE = 4002
    CYCLIC_GRAPH = 4003
    INCONSISTENT_STORE = 4004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class UniversalDbError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'ITEM_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(UniversalDbError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class StoreError(UniversalDbError):
    """Outcome of a failed Schema Store operation."""

    @classmethod
    def item_not_found(cls, table: str, **key: Any) -> "StoreError":
        described = ", ".join(f"{k}={v!r}" for k, v in key.items())
        return cls(
            code=ErrorCode.ITEM_NOT_FOUND,
            message=f"No row in '{table}' for {described}",
            details={"table": table, **key},
        )

    @classmethod
    def duplicate_class_name(cls, name: str) -> "StoreError":
        return cls(
            code=ErrorCode.DUPLICATE_CLASS_NAME,
            message=f"A class named '{name}' already exists",
            details={"name": name},
        )

    @classmethod
    def mystery(cls, operation: str, reason: str) -> "StoreError":
        return cls(
            code=ErrorCode.MYSTERY,
            message=f"Storage failure during {operation}: {reason}",
            details={"operation": operation, "reason": reason},
        )

    @classmethod
    def busy(cls, operation: str, reason: str) -> "StoreError":
        """Lock contention that outlasted the retry budget."""
        return cls(
            code=ErrorCode.MYSTERY,
            message=f"Database busy during {operation}: {reason}",
            retryable=True,
            details={"operation": operation, "reason": reason},
        )


class OrmError(UniversalDbError):
    """Errors raised while mapping instances to rows and back."""

    @classmethod
    def unresolvable_type(cls, name: str) -> "OrmError":
        return cls(
            code=ErrorCode.UNRESOLVABLE_TYPE,
            message=f"No registered type named '{name}'",
            details={"name": name},
        )

    @classmethod
    def unsupported_value(cls, owner: str, field: str, value: Any) -> "OrmError":
        return cls(
            code=ErrorCode.UNSUPPORTED_VALUE,
            message=f"Cannot encode {owner}.{field} of type {type(value).__name__}",
            details={"owner": owner, "field": field, "type": type(value).__name__},
        )

    @classmethod
    def cyclic_graph(cls, type_name: str) -> "OrmError":
        return cls(
            code=ErrorCode.CYCLIC_GRAPH,
            message=f"Object graph contains a cycle through an instance of {type_name}",
            details={"type": type_name},
        )

    @classmethod
    def inconsistent_store(cls, reason: str, **details: Any) -> "OrmError":
        return cls(
            code=ErrorCode.INCONSISTENT_STORE,
            message=f"Stored data is inconsistent: {reason}",
            details=details,
        )


class InternalError(UniversalDbError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
