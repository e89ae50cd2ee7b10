"""Schema module - the four-table universal schema and its data-access layer.

Public API:
- SchemaStore: typed CRUD over Class/Property/Object/Value rows
- Ok, Err, Result: closed outcome type returned by every store operation
- ClassEntry, PropertyEntry, ObjectEntry, ValueEntry: table models

Engine and transaction handling live in `universaldb.schema._internal.db`.
"""

from universaldb.schema._internal.db import Database
from universaldb.schema.models import (
    NULL_LITERAL,
    UNKNOWN_TYPE,
    ClassEntry,
    ObjectEntry,
    PropertyEntry,
    ValueEntry,
)
from universaldb.schema.results import Err, Ok, Result
from universaldb.schema.store import SchemaStore

__all__ = [
    "Database",
    "SchemaStore",
    "Ok",
    "Err",
    "Result",
    "ClassEntry",
    "PropertyEntry",
    "ObjectEntry",
    "ValueEntry",
    "UNKNOWN_TYPE",
    "NULL_LITERAL",
]
