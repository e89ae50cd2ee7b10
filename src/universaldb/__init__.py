"""UniversalDb - persist typed object graphs into a fixed four-table schema.

Public API:
- UniversalDb: store / load / schema queries
- TypeRegistry: the runtime types a load may materialize
- Ok, Err: outcome type of store operations and loads
"""

from universaldb.core.errors import ErrorCode, OrmError, StoreError, UniversalDbError
from universaldb.db import UniversalDb
from universaldb.orm.reflect import ClassDefinition, PropertyDefinition
from universaldb.orm.registry import TypeRegistry
from universaldb.schema.results import Err, Ok

__version__ = "0.1.0"

__all__ = [
    "UniversalDb",
    "TypeRegistry",
    "ClassDefinition",
    "PropertyDefinition",
    "Ok",
    "Err",
    "ErrorCode",
    "UniversalDbError",
    "StoreError",
    "OrmError",
]
