"""Instance serialization: one Object row plus one Value row per field.

Value encoding:
- None -> the literal ``null``
- scalar (str, int, float, bool, dict, list) -> JSON text
- named object -> stored recursively; the decimal id of its Object row

Nested objects are stored before the Value row that references them.
Field values with no stored form (tuple, set, Decimal, datetime, enums, ...)
are rejected with UNSUPPORTED_VALUE before the instance writes any row.
Cyclic graphs are rejected with CYCLIC_GRAPH.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog

from universaldb.core.errors import OrmError
from universaldb.orm.reconcile import ReconcileResult, SchemaReconciler
from universaldb.orm.reflect import InstanceView, is_named_object, is_scalar, super_view, view_of
from universaldb.schema.models import NULL_LITERAL

if TYPE_CHECKING:
    from universaldb.schema.models import PropertyEntry
    from universaldb.schema.store import SchemaStore

logger = structlog.get_logger()


def encode_scalar(value: Any) -> str:
    """Canonical reversible text form of a scalar (decoded by json.loads)."""
    return json.dumps(value, sort_keys=True)


def _check_encodable(view: InstanceView) -> None:
    """Reject a field value with no stored form before any row is written."""
    for name, value in view.values.items():
        if value is None or is_named_object(value) or is_scalar(value):
            continue
        raise OrmError.unsupported_value(view.type_name, name, value)


class InstanceSerializer:
    """Persists instances, recursing into object-valued fields."""

    def __init__(self, store: SchemaStore, reconciler: SchemaReconciler | None = None) -> None:
        self.store = store
        self.reconciler = reconciler or SchemaReconciler(store)

    async def store_instance(
        self,
        instance: Any,
        result: ReconcileResult | None = None,
    ) -> int:
        """
        Store ``instance`` and everything it references; return its Object id.

        Raises:
            StoreError: On any storage failure (rows written so far remain).
            OrmError: UNSUPPORTED_VALUE for unencodable fields,
                CYCLIC_GRAPH when the instance reaches itself.
        """
        if not is_named_object(instance):
            raise OrmError.unsupported_value("<root>", "<instance>", instance)
        result = result if result is not None else ReconcileResult()
        return await self._store(instance, result, active=set())

    async def _store(self, instance: Any, result: ReconcileResult, active: set[int]) -> int:
        marker = id(instance)
        if marker in active:
            raise OrmError.cyclic_graph(type(instance).__name__)
        active.add(marker)

        view = view_of(instance)
        _check_encodable(view)
        class_id = await self.reconciler.ensure_class_for(view, result)
        object_id = (await self.store.try_insert_object(class_id)).unwrap()

        for name, value in view.values.items():
            prop = await self._owning_property(view, class_id, name)
            encoded = await self._encode(view, name, value, result, active)
            (await self.store.try_insert_value(prop.id, object_id, encoded)).unwrap()  # type: ignore[arg-type]

        active.discard(marker)
        logger.debug("object_stored", type=view.type_name, id=object_id)
        return object_id

    async def _owning_property(self, view: InstanceView, class_id: int, name: str) -> PropertyEntry:
        """Property row for ``name`` on the level of the chain that declares it."""
        owner = view
        owner_id: int | None = class_id
        parent = super_view(owner)
        while parent is not None and name in parent.values:
            owner, owner_id = parent, None
            parent = super_view(owner)

        if owner_id is None:
            owner_id = (await self.store.try_get_class_by_name(owner.type_name)).unwrap().id
        return (await self.store.try_get_property_by_name(owner_id, name)).unwrap()  # type: ignore[arg-type]

    async def _encode(
        self,
        view: InstanceView,
        name: str,
        value: Any,
        result: ReconcileResult,
        active: set[int],
    ) -> str:
        if value is None:
            return NULL_LITERAL
        if is_named_object(value):
            nested_id = await self._store(value, result, active)
            return str(nested_id)
        if not is_scalar(value):
            raise OrmError.unsupported_value(view.type_name, name, value)
        try:
            return encode_scalar(value)
        except (TypeError, ValueError) as e:
            raise OrmError.unsupported_value(view.type_name, name, value) from e
