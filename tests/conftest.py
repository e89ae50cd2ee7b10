"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

from __future__ import annotations

import sys
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local universaldb package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from universaldb.db import UniversalDb  # noqa: E402
from universaldb.schema.store import SchemaStore  # noqa: E402


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory(ignore_cleanup_errors=True) as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store(temp_dir: Path) -> Generator[SchemaStore, None, None]:
    """Schema store over a fresh database file."""
    schema_store = SchemaStore.open(temp_dir / "test.db")
    yield schema_store
    schema_store.close()


@pytest.fixture
def udb(store: SchemaStore) -> UniversalDb:
    """Facade over the fresh store (closed by the store fixture)."""
    return UniversalDb(store)
