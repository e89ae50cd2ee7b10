"""Database layer for the universal schema."""

from universaldb.schema._internal.db.database import Database

__all__ = ["Database"]
