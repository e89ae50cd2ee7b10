"""Tests for configuration models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from universaldb.config.models import (
    DatabaseConfig,
    LoggingConfig,
    LogOutputConfig,
    UniversalDbConfig,
)


class TestLogOutputConfig:
    """LogOutputConfig validation tests."""

    @pytest.mark.parametrize("destination", ["stderr", "stdout"])
    def test_given_stream_destination_when_validated_then_kept(self, destination: str) -> None:
        assert LogOutputConfig(destination=destination).destination == destination

    def test_given_absolute_file_when_validated_then_accepted(self, tmp_path: Path) -> None:
        path = tmp_path / "udb.log"
        assert LogOutputConfig(destination=str(path)).destination == str(path)

    def test_given_relative_file_when_validated_then_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/udb.log")

    def test_given_unknown_format_when_validated_then_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(format="xml")  # type: ignore[arg-type]


class TestLoggingConfig:
    def test_defaults_to_single_stderr_console_output(self) -> None:
        config = LoggingConfig()

        assert config.level == "INFO"
        assert len(config.outputs) == 1
        assert config.outputs[0].destination == "stderr"
        assert config.outputs[0].format == "console"


class TestDatabaseConfig:
    """DatabaseConfig validation and path resolution."""

    @pytest.mark.parametrize("field", ["busy_timeout_ms", "max_retries"])
    def test_given_negative_when_validated_then_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            DatabaseConfig(**{field: -1})

    def test_given_relative_path_when_resolved_then_anchored_at_root(self, tmp_path: Path) -> None:
        config = DatabaseConfig(path="nested/store.db")
        assert config.resolve_path(tmp_path) == tmp_path / "nested" / "store.db"

    def test_given_absolute_path_when_resolved_then_unchanged(self, tmp_path: Path) -> None:
        target = tmp_path / "abs.db"
        config = DatabaseConfig(path=str(target))
        assert config.resolve_path(Path("/somewhere/else")) == target


class TestUniversalDbConfig:
    def test_sections_default(self) -> None:
        config = UniversalDbConfig()

        assert isinstance(config.logging, LoggingConfig)
        assert config.database.busy_timeout_ms == 30000
        assert config.database.retry_max_delay_sec == 2.0
