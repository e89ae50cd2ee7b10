"""SQLModel definitions for the four-table universal schema.

Single source of truth for all table schemas.

- ClassEntry: one row per runtime type, linked to its superclass row
- PropertyEntry: one row per field declared directly on a class
- ObjectEntry: one row per stored instance
- ValueEntry: one row per (property, object) pair, holding the encoded value

Class and Property rows are append-only (the Unknown -> concrete type upgrade
is the only in-place mutation). Object and Value rows are written once.
"""

from sqlmodel import Field, SQLModel

# Type tag for a property whose value has only ever been observed as None
UNKNOWN_TYPE = "Unknown"

# Encoded form of a None value
NULL_LITERAL = "null"


class ClassEntry(SQLModel, table=True):
    """Persisted descriptor of one runtime type."""

    __tablename__ = "classes"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    super_id: int | None = Field(default=None, foreign_key="classes.id")


class PropertyEntry(SQLModel, table=True):
    """Persisted descriptor of one field declared directly on a class.

    ``type`` is a scalar tag (``str``, ``int``, ...), ``Unknown``, or the
    name of a stored class. No uniqueness constraint on (class_id, name).
    """

    __tablename__ = "properties"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    class_id: int = Field(foreign_key="classes.id", index=True)
    type: str


class ObjectEntry(SQLModel, table=True):
    """Persisted instance record."""

    __tablename__ = "objects"

    id: int | None = Field(default=None, primary_key=True)
    class_id: int = Field(foreign_key="classes.id", index=True)


class ValueEntry(SQLModel, table=True):
    """Persisted value of one property for one object."""

    __tablename__ = "property_values"

    id: int | None = Field(default=None, primary_key=True)
    prop_id: int = Field(foreign_key="properties.id", index=True)
    object_id: int = Field(foreign_key="objects.id", index=True)
    value: str
