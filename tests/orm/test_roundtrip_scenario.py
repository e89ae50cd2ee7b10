"""End-to-end store/load through UniversalDb.

Scenario: a Car (subtype of an empty Vehicle base) stored on its own, then a
Person referencing it as work car with no private car.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from universaldb.db import UniversalDb
from universaldb.orm.reflect import ClassDefinition, PropertyDefinition
from universaldb.schema.results import Err, Ok


class Vehicle:
    pass


class Car(Vehicle):
    modelName: str

    def __init__(self, modelName: str) -> None:
        self.modelName = modelName


class Person:
    name: str
    workCar: Any
    privateCar: Any

    def __init__(self, name: str, workCar: Any = None, privateCar: Any = None) -> None:
        self.name = name
        self.workCar = workCar
        self.privateCar = privateCar


KNOWN_TYPES = [Vehicle, Car, Person]


async def _properties(udb: UniversalDb, class_name: str) -> dict[str, str]:
    definition = await udb.class_definition(class_name)
    assert definition is not None
    return {p.name: p.type_name for p in definition.properties}


class TestCarPersonScenario:
    """Rows and reload for the Car / Person scenario."""

    @pytest.mark.asyncio
    async def test_schema_rows(self, udb: UniversalDb) -> None:
        car = Car("Green")
        await udb.store(car)
        await udb.store(Person("Ramon", workCar=car, privateCar=None))

        classes = (await udb.schema.try_get_all_classes()).unwrap()
        by_name = {c.name: c for c in classes}
        assert list(by_name) == ["Vehicle", "Car", "Person"]
        assert by_name["Vehicle"].super_id is None
        assert by_name["Car"].super_id == by_name["Vehicle"].id
        assert by_name["Person"].super_id is None

        assert await _properties(udb, "Vehicle") == {}
        assert await _properties(udb, "Car") == {"modelName": "str"}
        assert await _properties(udb, "Person") == {
            "name": "str",
            "workCar": "Car",
            "privateCar": "Unknown",
        }

    @pytest.mark.asyncio
    async def test_value_rows_link_objects(self, udb: UniversalDb) -> None:
        car = Car("Green")
        await udb.store(car)
        person_id = await udb.store(Person("Ramon", workCar=car))

        person_class = (await udb.schema.try_get_class_by_name("Person")).unwrap()
        work_car = (await udb.schema.try_get_property_by_name(person_class.id, "workCar")).unwrap()
        ref = (await udb.schema.try_get_value_for_property(work_car.id, person_id)).unwrap()
        car_object = (await udb.schema.try_get_object_by_id(int(ref.value))).unwrap()
        car_class = (await udb.schema.try_get_class_by_name("Car")).unwrap()

        assert car_object.class_id == car_class.id
        assert (await udb.schema.try_get_object_by_id(person_id)).unwrap().class_id == (
            person_class.id
        )

    @pytest.mark.asyncio
    async def test_load_rebuilds_person(self, udb: UniversalDb) -> None:
        car = Car("Green")
        await udb.store(car)
        person_id = await udb.store(Person("Ramon", workCar=car, privateCar=None))

        result = await udb.load(person_id, KNOWN_TYPES)

        assert isinstance(result, Ok)
        person = result.value
        assert isinstance(person, Person)
        assert person.name == "Ramon"
        assert isinstance(person.workCar, Car)
        assert person.workCar.modelName == "Green"
        assert person.privateCar is None

    @pytest.mark.asyncio
    async def test_private_car_upgraded_by_later_store(self, udb: UniversalDb) -> None:
        await udb.store(Person("Ramon", workCar=Car("Green")))
        assert await udb.property_is_unknown("Person", "privateCar")

        await udb.store(Person("Ana", privateCar=Car("Red")))

        assert not await udb.property_is_unknown("Person", "privateCar")
        assert (await _properties(udb, "Person"))["privateCar"] == "Car"


@dataclass
class Address:
    street: str
    number: int


@dataclass
class Customer:
    name: str
    address: Address
    tags: list[str] = field(default_factory=list)
    score: float = 0.0
    active: bool = True


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True, slots=True)
class Segment:
    start: Point
    end: Point
    label: str


class Wheeled:
    def __init__(self, wheelCount: int) -> None:
        self.wheelCount = wheelCount


class Coupe(Wheeled):
    def __init__(self, colorName: str) -> None:
        super().__init__(4)
        self.colorName = colorName


class TestRoundTrip:
    """Acyclic graphs come back structurally equal."""

    @pytest.mark.asyncio
    async def test_dataclass_graph(self, udb: UniversalDb) -> None:
        customer = Customer("Ada", Address("Main", 1), ["vip"], 9.5, False)

        object_id = await udb.store(customer)
        loaded = await udb.try_load(object_id, [Customer, Address])

        assert loaded == customer

    @pytest.mark.asyncio
    async def test_inherited_fields_round_trip(self, udb: UniversalDb) -> None:
        @dataclass
        class Base:
            label: str

        @dataclass
        class Derived(Base):
            size: int

        object_id = await udb.store(Derived("box", 3))

        loaded = await udb.try_load(object_id, [Base, Derived])

        assert loaded == Derived("box", 3)
        definition = await udb.class_definition("Derived")
        assert definition == ClassDefinition("Derived", (PropertyDefinition("size", "int"),))

    @pytest.mark.asyncio
    async def test_frozen_dataclass(self, udb: UniversalDb) -> None:
        object_id = await udb.store(Point(1, 2))

        loaded = await udb.try_load(object_id, [Point])

        assert loaded == Point(1, 2)

    @pytest.mark.asyncio
    async def test_frozen_slotted_dataclass_graph(self, udb: UniversalDb) -> None:
        segment = Segment(Point(0, 0), Point(3, 4), "diagonal")

        object_id = await udb.store(segment)

        assert await udb.try_load(object_id, [Segment, Point]) == segment

    @pytest.mark.asyncio
    async def test_base_init_attribute_stored_on_base(self, udb: UniversalDb) -> None:
        """An attribute set by the base __init__ is a property of the base class."""
        object_id = await udb.store(Coupe("Red"))

        assert await _properties(udb, "Wheeled") == {"wheelCount": "int"}
        assert await _properties(udb, "Coupe") == {"colorName": "str"}
        loaded = await udb.try_load(object_id, [Wheeled, Coupe])
        assert type(loaded) is Coupe
        assert (loaded.wheelCount, loaded.colorName) == (4, "Red")


class TestFacadeQueries:
    """Schema queries and not-found handling on the facade."""

    @pytest.mark.asyncio
    async def test_class_and_property_queries(self, udb: UniversalDb) -> None:
        await udb.store(Person("Ramon"))

        assert await udb.class_exists("Person")
        assert not await udb.class_exists("Car")
        assert await udb.property_exists("Person", "name")
        assert not await udb.property_exists("Person", "age")
        assert not await udb.property_exists("Nobody", "name")
        assert await udb.property_is_unknown("Person", "workCar")
        assert not await udb.property_is_unknown("Person", "name")
        assert await udb.class_definition("Nobody") is None

    @pytest.mark.asyncio
    async def test_missing_object(self, udb: UniversalDb) -> None:
        assert isinstance(await udb.load(12345, KNOWN_TYPES), Err)
        assert await udb.try_load(12345, KNOWN_TYPES) is None
        assert await udb.describe(12345) is None

    @pytest.mark.asyncio
    async def test_describe(self, udb: UniversalDb) -> None:
        person_id = await udb.store(Person("Ramon", workCar=Car("Green")))

        dump = await udb.describe(person_id)

        assert dump is not None
        assert dump["class"] == "Person"
        assert dump["values"]["name"] == "Ramon"
        assert dump["values"]["workCar"]["values"] == {"modelName": "Green"}
        assert dump["values"]["privateCar"] is None
