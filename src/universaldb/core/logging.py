"""Structured logging for store and load operations.

Every ``UniversalDb.store`` / ``load`` call runs inside an ``operation_scope``.
Events emitted while it is active (reconciler decisions, row inserts, SQLite
busy retries on the executor thread) carry the same ``op_id`` plus the
operation kind under ``op``, so one stored object graph can be followed
through the log.

Outputs are configured from ``LoggingConfig``: each output is stderr, stdout
or an absolute file path, rendered as console text or JSON lines, with its
own level.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from universaldb.config.models import LoggingConfig, LogOutputConfig

# (operation kind, operation id) of the active store/load call
_operation: ContextVar[tuple[str, str] | None] = ContextVar("operation", default=None)

# First file destination of the current configuration
_log_file_path: Path | None = None


def get_operation_id() -> str | None:
    current = _operation.get()
    return current[1] if current is not None else None


@contextmanager
def operation_scope(kind: str, operation_id: str | None = None) -> Iterator[str]:
    """Tag every event logged inside the block with one operation id.

    Scopes nest: the previous operation is restored on exit.
    """
    op_id = operation_id or uuid4().hex[:12]
    token = _operation.set((kind, op_id))
    try:
        yield op_id
    finally:
        _operation.reset(token)


def get_log_file_path() -> Path | None:
    """File the current configuration logs to, if any."""
    return _log_file_path


def _add_operation(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    current = _operation.get()
    if current is not None:
        event_dict.setdefault("op", current[0])
        event_dict["op_id"] = current[1]
    return event_dict


_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog events through stdlib handlers, one per configured output.

    Args:
        config: Full logging configuration. Wins over the simple params.
        json_format: JSON lines on stderr when no config is given
        level: Root level when no config is given
    """
    global _log_file_path
    from universaldb.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    default_level = _LEVEL_MAP.get(config.level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_operation,  # type: ignore[list-item]
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration (CLI -v, tests) must reach loggers created earlier
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()
    root_logger.setLevel(default_level)

    # SQL statements are not part of our event stream
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    _log_file_path = next(
        (Path(o.destination) for o in config.outputs if o.destination not in ("stderr", "stdout")),
        None,
    )

    for output in config.outputs:
        handler = _create_handler(output.destination)
        handler.setLevel(_LEVEL_MAP.get((output.level or config.level).upper(), default_level))
        handler.setFormatter(_make_formatter(output, shared_processors))
        root_logger.addHandler(handler)


def _make_formatter(
    output: LogOutputConfig,
    shared_processors: list[structlog.types.Processor],
) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        is_console = output.destination in ("stderr", "stdout")
        renderer = structlog.dev.ConsoleRenderer(
            colors=is_console and sys.stderr.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )


def _create_handler(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
