"""Instance reconstruction from stored rows.

Absence (missing object, class or value row, or a class name with no
registered type) is reported as ``Err`` rather than raised. A reference to an
Object row that does not exist is an inconsistency and raises.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog

from universaldb.core.errors import OrmError
from universaldb.orm.reflect import SCALAR_TYPES
from universaldb.orm.registry import TypeRegistry
from universaldb.schema.models import NULL_LITERAL, UNKNOWN_TYPE
from universaldb.schema.results import Err, Ok, Result

if TYPE_CHECKING:
    from collections.abc import Iterable

    from universaldb.schema.models import ClassEntry, PropertyEntry
    from universaldb.schema.store import SchemaStore

logger = structlog.get_logger()


def _miss(result: Err) -> Err:
    """Pass a not-found outcome back to the caller; raise anything else."""
    if not result.is_not_found():
        result.unwrap()
    return result


class InstanceDeserializer:
    """Rebuilds typed instances from the four tables."""

    def __init__(self, store: SchemaStore) -> None:
        self.store = store

    async def load(
        self,
        object_id: int,
        known_types: TypeRegistry | Iterable[type],
    ) -> Result[Any]:
        """
        Load the object stored under ``object_id``.

        Returns:
            Ok(instance), or Err with ITEM_NOT_FOUND / UNRESOLVABLE_TYPE.

        Raises:
            StoreError: Storage failures other than lookup misses.
            OrmError: INCONSISTENT_STORE when stored rows contradict each other.
        """
        registry = TypeRegistry.coerce(known_types)
        return await self._load(object_id, registry, referenced=False)

    async def _load(self, object_id: int, registry: TypeRegistry, referenced: bool) -> Result[Any]:
        obj = await self.store.try_get_object_by_id(object_id)
        if isinstance(obj, Err):
            if referenced and obj.is_not_found():
                raise OrmError.inconsistent_store(
                    "value references a missing object", object_id=object_id
                )
            return _miss(obj)

        class_entry = await self.store.try_get_class_by_id(obj.value.class_id)
        if isinstance(class_entry, Err):
            return _miss(class_entry)

        cls = registry.resolve(class_entry.value.name)
        if cls is None:
            logger.info("load_unresolved", name=class_entry.value.name, object_id=object_id)
            return Err(OrmError.unresolvable_type(class_entry.value.name))

        properties = await self._property_chain(class_entry.value)
        if isinstance(properties, Err):
            return properties

        instance = cls.__new__(cls)
        for prop in properties.value:
            value = await self.store.try_get_value_for_property(prop.id, object_id)  # type: ignore[arg-type]
            if isinstance(value, Err):
                return _miss(value)

            decoded = await self._decode(prop, value.value.value, registry)
            if isinstance(decoded, Err):
                return decoded
            # Bypasses frozen dataclass and __setattr__ overrides
            object.__setattr__(instance, prop.name, decoded.value)

        logger.debug("object_loaded", type=cls.__name__, id=object_id)
        return Ok(instance)

    async def _property_chain(self, class_entry: ClassEntry) -> Result[list[PropertyEntry]]:
        """Property rows of the class and all its ancestors, root first."""
        levels: list[list[PropertyEntry]] = []
        current: ClassEntry | None = class_entry
        seen: set[int] = set()
        while current is not None:
            if current.id in seen:
                raise OrmError.inconsistent_store("cyclic superclass chain", class_id=current.id)
            seen.add(current.id)  # type: ignore[arg-type]

            props = await self.store.try_get_properties_by_class_id(current.id)  # type: ignore[arg-type]
            if isinstance(props, Err):
                return _miss(props)
            levels.append(props.value)

            if current.super_id is None:
                current = None
                continue
            parent = await self.store.try_get_class_by_id(current.super_id)
            if isinstance(parent, Err):
                return _miss(parent)
            current = parent.value

        # Root-most row wins when a name repeats along the chain
        ordered: list[PropertyEntry] = []
        names: set[str] = set()
        for level in reversed(levels):
            for prop in level:
                if prop.name not in names:
                    names.add(prop.name)
                    ordered.append(prop)
        return Ok(ordered)

    async def _decode(self, prop: PropertyEntry, encoded: str, registry: TypeRegistry) -> Result[Any]:
        if prop.type == UNKNOWN_TYPE or encoded == NULL_LITERAL:
            return Ok(None)
        if prop.type in SCALAR_TYPES:
            return Ok(_decode_scalar(prop, encoded))
        return await self._load(_reference_id(prop, encoded), registry, referenced=True)

    async def describe(self, object_id: int) -> Result[dict[str, Any]]:
        """Type-free nested dump of a stored object, following references.

        Raises:
            OrmError: INCONSISTENT_STORE for undecodable or dangling values.
        """
        obj = await self.store.try_get_object_by_id(object_id)
        if isinstance(obj, Err):
            return _miss(obj)
        class_entry = await self.store.try_get_class_by_id(obj.value.class_id)
        if isinstance(class_entry, Err):
            return _miss(class_entry)
        properties = await self._property_chain(class_entry.value)
        if isinstance(properties, Err):
            return properties

        values: dict[str, Any] = {}
        for prop in properties.value:
            value = await self.store.try_get_value_for_property(prop.id, object_id)  # type: ignore[arg-type]
            if isinstance(value, Err):
                return _miss(value)
            encoded = value.value.value
            if prop.type == UNKNOWN_TYPE or encoded == NULL_LITERAL:
                values[prop.name] = None
            elif prop.type in SCALAR_TYPES:
                values[prop.name] = _decode_scalar(prop, encoded)
            else:
                nested_id = _reference_id(prop, encoded)
                nested = await self.describe(nested_id)
                if isinstance(nested, Err):
                    if nested.is_not_found():
                        raise OrmError.inconsistent_store(
                            "value references a missing object", object_id=nested_id
                        )
                    return nested
                values[prop.name] = nested.value

        return Ok({"id": object_id, "class": class_entry.value.name, "values": values})


def _decode_scalar(prop: PropertyEntry, encoded: str) -> Any:
    try:
        return json.loads(encoded)
    except json.JSONDecodeError as e:
        raise OrmError.inconsistent_store(
            "undecodable scalar", property_id=prop.id, value=encoded
        ) from e


def _reference_id(prop: PropertyEntry, encoded: str) -> int:
    try:
        return int(encoded)
    except ValueError as e:
        raise OrmError.inconsistent_store(
            "reference is not an object id", property_id=prop.id, value=encoded
        ) from e
