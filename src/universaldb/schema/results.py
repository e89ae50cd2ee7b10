"""Closed result type for Schema Store and load outcomes.

Every store operation returns either ``Ok(value)`` or ``Err(error)``; callers
branch on ``isinstance(result, Err)`` and the error's ``kind``, or call
``unwrap()`` when any failure is fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

from universaldb.core.errors import ErrorCode, UniversalDbError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err:
    """Failed outcome carrying a typed error."""

    error: UniversalDbError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorCode:
        return self.error.code

    def is_not_found(self) -> bool:
        return self.error.code == ErrorCode.ITEM_NOT_FOUND

    def unwrap(self) -> NoReturn:
        raise self.error


Result = Union[Ok[T], Err]
