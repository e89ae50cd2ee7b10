"""Schema reconciliation: make Class/Property rows match an instance.

The Reconciler compares what reflection observes on an about-to-be-stored
instance with the stored schema and issues the missing mutations:

- Class rows are created on first encounter, superclasses first
- Property rows are created for fields first declared at each level
- A property recorded as Unknown is upgraded once a concrete type is seen
- A property with a concrete type is never changed (first concrete type wins)

Nothing is cached; every decision re-reads the store. A lost race on the
Class.name unique constraint is recovered by re-fetching the winner's row.
Property rows have no uniqueness constraint, so concurrent first stores of
the same new property can both insert.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from universaldb.core.errors import ErrorCode
from universaldb.orm.reflect import InstanceView, PropertyDefinition, reflect, super_view
from universaldb.schema.models import UNKNOWN_TYPE
from universaldb.schema.results import Err

if TYPE_CHECKING:
    from universaldb.schema.store import SchemaStore

logger = structlog.get_logger()


@dataclass
class ReconcileResult:
    """Schema mutations issued while reconciling one store call."""

    classes_created: int = 0
    classes_recovered: int = 0
    properties_created: int = 0
    properties_upgraded: int = 0

    @property
    def schema_changed(self) -> bool:
        return bool(self.classes_created or self.properties_created or self.properties_upgraded)


class SchemaReconciler:
    """Brings the Class/Property tables in line with observed instances."""

    def __init__(self, store: SchemaStore) -> None:
        self.store = store

    async def ensure_class_for(
        self,
        view: InstanceView,
        result: ReconcileResult | None = None,
    ) -> int:
        """
        Return the Class row id for ``view``'s type, creating schema as needed.

        The superclass chain is reconciled first, so a superclass row always
        exists (and has the lower id) before a subclass row references it.
        Own properties are reconciled on every call, not just on creation,
        so Unknown types get upgraded by later stores.

        Raises:
            StoreError: Any storage failure other than a lost class-insert race.
        """
        result = result if result is not None else ReconcileResult()
        descriptor = reflect(view)

        super_id: int | None = None
        parent = super_view(view)
        if parent is not None:
            super_id = await self.ensure_class_for(parent, result)

        found = await self.store.try_get_class_by_name(descriptor.type_name)
        if isinstance(found, Err):
            if not found.is_not_found():
                found.unwrap()
            class_id = await self._insert_class(descriptor.type_name, super_id, result)
        else:
            class_id = found.value.id  # type: ignore[assignment]
            if found.value.super_id != super_id:
                logger.warning(
                    "class_superclass_mismatch",
                    name=descriptor.type_name,
                    stored_super_id=found.value.super_id,
                    observed_super_id=super_id,
                )

        await self._reconcile_properties(class_id, descriptor.own_properties, result)
        return class_id

    async def _insert_class(self, name: str, super_id: int | None, result: ReconcileResult) -> int:
        inserted = await self.store.try_insert_class(name, super_id)
        if not isinstance(inserted, Err):
            result.classes_created += 1
            logger.info("class_inserted", name=name, id=inserted.value, super_id=super_id)
            return inserted.value

        if inserted.kind != ErrorCode.DUPLICATE_CLASS_NAME:
            inserted.unwrap()

        # Another writer created the row between our lookup and insert
        winner = (await self.store.try_get_class_by_name(name)).unwrap()
        result.classes_recovered += 1
        logger.info("duplicate_class_recovered", name=name, id=winner.id)
        return winner.id  # type: ignore[return-value]

    async def _reconcile_properties(
        self,
        class_id: int,
        properties: tuple[PropertyDefinition, ...],
        result: ReconcileResult,
    ) -> None:
        for prop in properties:
            found = await self.store.try_get_property_by_name(class_id, prop.name)
            if isinstance(found, Err):
                if not found.is_not_found():
                    found.unwrap()
                prop_id = (
                    await self.store.try_insert_property(prop.name, class_id, prop.type_name)
                ).unwrap()
                result.properties_created += 1
                logger.debug(
                    "property_inserted",
                    class_id=class_id,
                    name=prop.name,
                    type=prop.type_name,
                    id=prop_id,
                )
                continue

            entry = found.value
            if prop.type_name == UNKNOWN_TYPE or entry.type == prop.type_name:
                continue
            if entry.type == UNKNOWN_TYPE:
                (
                    await self.store.try_update_property(
                        entry.id,  # type: ignore[arg-type]
                        entry.name,
                        entry.class_id,
                        prop.type_name,
                    )
                ).unwrap()
                result.properties_upgraded += 1
                logger.info(
                    "property_type_upgraded",
                    class_id=class_id,
                    name=prop.name,
                    type=prop.type_name,
                )
            else:
                # First concrete type wins; later observations are not re-checked
                logger.debug(
                    "property_type_kept",
                    class_id=class_id,
                    name=prop.name,
                    stored=entry.type,
                    observed=prop.type_name,
                )
