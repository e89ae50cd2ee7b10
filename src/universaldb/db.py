"""UniversalDb: store and load typed object graphs in four fixed tables.

Usage::

    db = UniversalDb.open(Path("universal.db"))
    car_id = await db.store(Car(model_name="Green"))
    loaded = await db.try_load(car_id, [Vehicle, Car])
    db.close()

``store`` reconciles the class/property schema, then writes the object and
its values (nested objects first). ``load`` rebuilds an instance of the
registered type. Nothing is cached between calls.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from universaldb.core.logging import operation_scope
from universaldb.orm.deserialize import InstanceDeserializer
from universaldb.orm.reconcile import ReconcileResult, SchemaReconciler
from universaldb.orm.reflect import ClassDefinition, PropertyDefinition
from universaldb.orm.registry import TypeRegistry
from universaldb.orm.serialize import InstanceSerializer
from universaldb.schema.models import UNKNOWN_TYPE
from universaldb.schema.results import Err, Result
from universaldb.schema.store import SchemaStore

if TYPE_CHECKING:
    from universaldb.config.models import DatabaseConfig, UniversalDbConfig
    from universaldb.schema.models import PropertyEntry

logger = structlog.get_logger()


class UniversalDb:
    """High-level entry point wiring store, reconciler and (de)serializers."""

    def __init__(self, store: SchemaStore) -> None:
        self.schema = store
        self.reconciler = SchemaReconciler(store)
        self.serializer = InstanceSerializer(store, self.reconciler)
        self.deserializer = InstanceDeserializer(store)

    @classmethod
    def open(cls, db_path: Path, config: DatabaseConfig | None = None) -> UniversalDb:
        """Open the database file, creating the tables if they are missing."""
        return cls(SchemaStore.open(db_path, config))

    @classmethod
    def from_config(cls, config: UniversalDbConfig, root: Path | None = None) -> UniversalDb:
        root = root or Path.cwd()
        return cls.open(config.database.resolve_path(root), config.database)

    def close(self) -> None:
        self.schema.close()

    def __enter__(self) -> UniversalDb:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # =========================================================================
    # Objects
    # =========================================================================

    async def store(self, instance: Any) -> int:
        """Persist ``instance`` (and every object it references); return its id.

        Raises:
            StoreError: Storage failure. Rows written before it are kept.
            OrmError: Unencodable field value or cyclic graph.
        """
        with operation_scope("store"):
            result = ReconcileResult()
            object_id = await self.serializer.store_instance(instance, result)
            logger.info(
                "store_completed",
                type=type(instance).__name__,
                id=object_id,
                classes_created=result.classes_created,
                properties_created=result.properties_created,
                properties_upgraded=result.properties_upgraded,
            )
            return object_id

    async def load(
        self,
        object_id: int,
        known_types: TypeRegistry | Iterable[type],
    ) -> Result[Any]:
        """Rebuild the object stored under ``object_id``.

        Returns ``Ok(instance)`` or ``Err`` carrying ITEM_NOT_FOUND or
        UNRESOLVABLE_TYPE.
        """
        with operation_scope("load"):
            outcome = await self.deserializer.load(object_id, known_types)
            if isinstance(outcome, Err):
                logger.info("load_failed", id=object_id, error=outcome.error.error_name)
            return outcome

    async def try_load(
        self,
        object_id: int,
        known_types: TypeRegistry | Iterable[type],
    ) -> Any | None:
        """Like ``load`` but returns None for any not-found outcome."""
        outcome = await self.load(object_id, known_types)
        return None if isinstance(outcome, Err) else outcome.value

    async def describe(self, object_id: int) -> dict[str, Any] | None:
        """Type-free nested dump of a stored object, or None if absent."""
        outcome = await self.deserializer.describe(object_id)
        return None if isinstance(outcome, Err) else outcome.value

    # =========================================================================
    # Schema queries
    # =========================================================================

    async def class_exists(self, name: str) -> bool:
        found = await self.schema.try_get_class_by_name(name)
        if isinstance(found, Err):
            if not found.is_not_found():
                found.unwrap()
            return False
        return True

    async def class_definition(self, name: str) -> ClassDefinition | None:
        """Stored definition of a class: its own (directly declared) properties."""
        found = await self.schema.try_get_class_by_name(name)
        if isinstance(found, Err):
            if not found.is_not_found():
                found.unwrap()
            return None
        props = (await self.schema.try_get_properties_by_class_id(found.value.id)).unwrap()  # type: ignore[arg-type]
        return ClassDefinition(
            name=found.value.name,
            properties=tuple(PropertyDefinition(p.name, p.type) for p in props),
        )

    async def property_exists(self, class_name: str, property_name: str) -> bool:
        return await self._find_property(class_name, property_name) is not None

    async def property_is_unknown(self, class_name: str, property_name: str) -> bool:
        prop = await self._find_property(class_name, property_name)
        return prop is not None and prop.type == UNKNOWN_TYPE

    async def _find_property(self, class_name: str, property_name: str) -> PropertyEntry | None:
        found = await self.schema.try_get_class_by_name(class_name)
        if isinstance(found, Err):
            if not found.is_not_found():
                found.unwrap()
            return None
        prop = await self.schema.try_get_property_by_name(found.value.id, property_name)  # type: ignore[arg-type]
        if isinstance(prop, Err):
            if not prop.is_not_found():
                prop.unwrap()
            return None
        return prop.value
