"""Registry of the runtime types a load may materialize."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class TypeRegistry:
    """Maps stored class names to Python classes.

    Usage::

        registry = TypeRegistry([Vehicle, Car, Person])
        registry.resolve("Car")  # -> Car
    """

    def __init__(self, types: Iterable[type] = ()) -> None:
        self._types: dict[str, type] = {}
        self.register(*types)

    @classmethod
    def coerce(cls, known_types: TypeRegistry | Iterable[type]) -> TypeRegistry:
        if isinstance(known_types, TypeRegistry):
            return known_types
        return cls(known_types)

    def register(self, *types: type) -> None:
        for cls in types:
            existing = self._types.get(cls.__name__)
            if existing is not None and existing is not cls:
                raise ValueError(
                    f"Type name '{cls.__name__}' is already registered to "
                    f"{existing.__module__}.{existing.__qualname__}"
                )
            self._types[cls.__name__] = cls

    def resolve(self, name: str) -> type | None:
        return self._types.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[type]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)
