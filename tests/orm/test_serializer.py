"""Tests for InstanceSerializer: Object and Value rows for instances."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from unittest.mock import patch
from uuid import UUID

import pytest

from universaldb.core.errors import ErrorCode, OrmError, StoreError
from universaldb.orm.serialize import InstanceSerializer, encode_scalar
from universaldb.schema.results import Err
from universaldb.schema.store import SchemaStore


class Vehicle:
    wheels: int

    def __init__(self, wheels: int = 4) -> None:
        self.wheels = wheels


class Car(Vehicle):
    model_name: str

    def __init__(self, model_name: str) -> None:
        super().__init__()
        self.model_name = model_name


class Node:
    def __init__(self, label: str, next: Any = None) -> None:
        self.label = label
        self.next = next


class Bag:
    def __init__(self, **values: Any) -> None:
        self.__dict__.update(values)


class Color(Enum):
    RED = "red"


async def _value(store: SchemaStore, class_name: str, prop: str, object_id: int) -> str:
    class_id = (await store.try_get_class_by_name(class_name)).unwrap().id
    prop_id = (await store.try_get_property_by_name(class_id, prop)).unwrap().id
    return (await store.try_get_value_for_property(prop_id, object_id)).unwrap().value


class TestEncodeScalar:
    @pytest.mark.parametrize(
        ("value", "encoded"),
        [
            ("Green", '"Green"'),
            (42, "42"),
            (1.5, "1.5"),
            (False, "false"),
            ({"b": 1, "a": [1, 2]}, '{"a": [1, 2], "b": 1}'),
        ],
    )
    def test_canonical_json(self, value: Any, encoded: str) -> None:
        assert encode_scalar(value) == encoded


class TestStoreInstance:
    """Rows written for a stored instance."""

    @pytest.mark.asyncio
    async def test_scalar_fields_encoded(self, store: SchemaStore) -> None:
        serializer = InstanceSerializer(store)

        object_id = await serializer.store_instance(Bag(name="Ramon", age=40, extra=None))

        assert await _value(store, "Bag", "name", object_id) == '"Ramon"'
        assert await _value(store, "Bag", "age", object_id) == "40"
        assert await _value(store, "Bag", "extra", object_id) == "null"

    @pytest.mark.asyncio
    async def test_nested_object_stored_first_and_referenced_by_id(
        self, store: SchemaStore
    ) -> None:
        serializer = InstanceSerializer(store)

        head_id = await serializer.store_instance(Node("head", Node("tail")))

        tail_ref = await _value(store, "Node", "next", head_id)
        tail = (await store.try_get_object_by_id(int(tail_ref))).unwrap()
        assert tail.id != head_id
        assert await _value(store, "Node", "label", tail.id) == '"tail"'
        assert await _value(store, "Node", "next", tail.id) == "null"

    @pytest.mark.asyncio
    async def test_inherited_field_uses_ancestor_property_row(self, store: SchemaStore) -> None:
        serializer = InstanceSerializer(store)

        car_id = await serializer.store_instance(Car("Green"))

        assert await _value(store, "Vehicle", "wheels", car_id) == "4"
        assert await _value(store, "Car", "model_name", car_id) == '"Green"'
        car_class = (await store.try_get_class_by_name("Car")).unwrap()
        car_props = (await store.try_get_properties_by_class_id(car_class.id)).unwrap()
        assert [p.name for p in car_props] == ["model_name"]


class TestRejectedGraphs:
    """Values and graphs that cannot be stored."""

    @pytest.mark.asyncio
    async def test_cycle_rejected(self, store: SchemaStore) -> None:
        first = Node("a")
        first.next = Node("b", first)

        with pytest.raises(OrmError) as exc_info:
            await InstanceSerializer(store).store_instance(first)

        assert exc_info.value.code == ErrorCode.CYCLIC_GRAPH

    @pytest.mark.asyncio
    async def test_shared_reference_is_not_a_cycle(self, store: SchemaStore) -> None:
        shared = Node("shared")

        object_id = await InstanceSerializer(store).store_instance(Bag(left=shared, right=shared))

        left = await _value(store, "Bag", "left", object_id)
        right = await _value(store, "Bag", "right", object_id)
        assert left != right

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [(1, 2), {1, 2}, b"raw", 1 + 2j])
    async def test_unsupported_builtin_value(self, store: SchemaStore, value: Any) -> None:
        with pytest.raises(OrmError) as exc_info:
            await InstanceSerializer(store).store_instance(Bag(field=value))

        assert exc_info.value.code == ErrorCode.UNSUPPORTED_VALUE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "value",
        [
            Decimal("9.99"),
            datetime(2024, 1, 2),
            Color.RED,
            UUID("12345678-1234-5678-1234-567812345678"),
        ],
    )
    async def test_value_type_rejected_before_any_row(
        self, store: SchemaStore, value: Any
    ) -> None:
        """Values without a stored form fail instead of becoming empty objects."""
        with pytest.raises(OrmError) as exc_info:
            await InstanceSerializer(store).store_instance(Bag(label="launch", when=value))

        assert exc_info.value.code == ErrorCode.UNSUPPORTED_VALUE
        assert (await store.try_get_all_classes()).unwrap() == []
        assert isinstance(await store.try_get_object_by_id(1), Err)

    @pytest.mark.asyncio
    async def test_unencodable_nested_value_rejected(self, store: SchemaStore) -> None:
        with pytest.raises(OrmError):
            await InstanceSerializer(store).store_instance(Bag(field={"x": {1, 2}}))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("root", [None, 5, "text", [1]])
    async def test_root_must_be_named_object(self, store: SchemaStore, root: Any) -> None:
        with pytest.raises(OrmError) as exc_info:
            await InstanceSerializer(store).store_instance(root)

        assert exc_info.value.code == ErrorCode.UNSUPPORTED_VALUE

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, store: SchemaStore) -> None:
        async def failing(class_id: int):  # type: ignore[no-untyped-def]
            return Err(StoreError.mystery("insert_object", "disk I/O error"))

        with (
            patch.object(store, "try_insert_object", side_effect=failing),
            pytest.raises(StoreError) as exc_info,
        ):
            await InstanceSerializer(store).store_instance(Node("x"))

        assert exc_info.value.code == ErrorCode.MYSTERY
