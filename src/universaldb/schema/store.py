"""Schema Store: typed CRUD over the Class, Property, Object and Value tables.

The store holds no state beyond the database handle. Each operation is a
single-row read or write, returned as ``Ok(value)`` or ``Err(StoreError)``:

- ITEM_NOT_FOUND: lookup miss
- DUPLICATE_CLASS_NAME: unique constraint on ClassEntry.name
- MYSTERY: every other storage failure (foreign keys, I/O, lock timeout)

Operations are coroutines. Blocking SQLite work runs on a single-worker
executor, so all row mutations issued through one store are serialized.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlmodel import SQLModel, select

from universaldb.core.errors import StoreError
from universaldb.schema._internal.db.database import Database, _is_database_locked_error
from universaldb.schema.models import ClassEntry, ObjectEntry, PropertyEntry, ValueEntry
from universaldb.schema.results import Err, Ok, Result

if TYPE_CHECKING:
    from universaldb.config.models import DatabaseConfig

logger = structlog.get_logger()

T = TypeVar("T")


def _reason(error: SQLAlchemyError) -> str:
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


class SchemaStore:
    """Data-access layer for the universal schema. No business logic."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="universaldb")

    @classmethod
    def open(cls, db_path: Path, config: DatabaseConfig | None = None) -> SchemaStore:
        """Open (and create if needed) the database at ``db_path``."""
        db = Database.from_config(db_path, config) if config is not None else Database(db_path)
        db.create_all()
        return cls(db)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self.db.dispose()

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        # Carry the caller's operation id into the worker thread
        call = functools.partial(contextvars.copy_context().run, fn, *args)
        return await loop.run_in_executor(self._executor, call)

    # =========================================================================
    # Class
    # =========================================================================

    async def try_insert_class(self, name: str, super_id: int | None = None) -> Result[int]:
        return await self._run(self._insert, "insert_class", ClassEntry(name=name, super_id=super_id))

    async def try_update_class(self, id: int, name: str, super_id: int | None) -> Result[None]:
        def apply(entry: ClassEntry) -> None:
            entry.name = name
            entry.super_id = super_id

        return await self._run(self._update, "update_class", ClassEntry, id, apply, name)

    async def try_get_class_by_name(self, name: str) -> Result[ClassEntry]:
        def query() -> Result[ClassEntry]:
            with self.db.session() as session:
                entry = session.exec(select(ClassEntry).where(ClassEntry.name == name)).first()
            if entry is None:
                return Err(StoreError.item_not_found("classes", name=name))
            return Ok(entry)

        return await self._run(self._read, "get_class_by_name", query)

    async def try_get_class_by_id(self, id: int) -> Result[ClassEntry]:
        return await self._run(self._get, "get_class_by_id", ClassEntry, id)

    async def try_get_all_classes(self) -> Result[list[ClassEntry]]:
        def query() -> Result[list[ClassEntry]]:
            with self.db.session() as session:
                entries = session.exec(select(ClassEntry).order_by(ClassEntry.id)).all()
            return Ok(list(entries))

        return await self._run(self._read, "get_all_classes", query)

    # =========================================================================
    # Property
    # =========================================================================

    async def try_insert_property(self, name: str, class_id: int, type: str) -> Result[int]:
        entry = PropertyEntry(name=name, class_id=class_id, type=type)
        return await self._run(self._insert, "insert_property", entry)

    async def try_update_property(
        self, id: int, name: str, class_id: int, type: str
    ) -> Result[None]:
        def apply(entry: PropertyEntry) -> None:
            entry.name = name
            entry.class_id = class_id
            entry.type = type

        return await self._run(self._update, "update_property", PropertyEntry, id, apply)

    async def try_get_property_by_name(self, class_id: int, name: str) -> Result[PropertyEntry]:
        """Property row for (class_id, name); the oldest row wins if duplicated."""

        def query() -> Result[PropertyEntry]:
            with self.db.session() as session:
                stmt = (
                    select(PropertyEntry)
                    .where(PropertyEntry.class_id == class_id, PropertyEntry.name == name)
                    .order_by(PropertyEntry.id)
                )
                entry = session.exec(stmt).first()
            if entry is None:
                return Err(StoreError.item_not_found("properties", class_id=class_id, name=name))
            return Ok(entry)

        return await self._run(self._read, "get_property_by_name", query)

    async def try_get_property_ids_by_name(self, name: str) -> Result[list[int]]:
        """Ids of every property row called ``name``, across all classes."""

        def query() -> Result[list[int]]:
            with self.db.session() as session:
                stmt = select(PropertyEntry.id).where(PropertyEntry.name == name)
                ids = session.exec(stmt.order_by(PropertyEntry.id)).all()
            return Ok([i for i in ids if i is not None])

        return await self._run(self._read, "get_property_ids_by_name", query)

    async def try_get_properties_by_class_id(self, class_id: int) -> Result[list[PropertyEntry]]:
        """All property rows of a class, in creation order.

        A class without properties yields an empty list; ITEM_NOT_FOUND is
        reserved for a class id that does not exist.
        """

        def query() -> Result[list[PropertyEntry]]:
            with self.db.session() as session:
                stmt = (
                    select(PropertyEntry)
                    .where(PropertyEntry.class_id == class_id)
                    .order_by(PropertyEntry.id)
                )
                entries = list(session.exec(stmt).all())
                if not entries and session.get(ClassEntry, class_id) is None:
                    return Err(StoreError.item_not_found("classes", id=class_id))
            return Ok(entries)

        return await self._run(self._read, "get_properties_by_class_id", query)

    # =========================================================================
    # Object
    # =========================================================================

    async def try_insert_object(self, class_id: int) -> Result[int]:
        return await self._run(self._insert, "insert_object", ObjectEntry(class_id=class_id))

    async def try_get_object_by_id(self, id: int) -> Result[ObjectEntry]:
        return await self._run(self._get, "get_object_by_id", ObjectEntry, id)

    # =========================================================================
    # Value
    # =========================================================================

    async def try_insert_value(self, prop_id: int, object_id: int, value: str) -> Result[int]:
        entry = ValueEntry(prop_id=prop_id, object_id=object_id, value=value)
        return await self._run(self._insert, "insert_value", entry)

    async def try_get_value_for_property(self, prop_id: int, object_id: int) -> Result[ValueEntry]:
        def query() -> Result[ValueEntry]:
            with self.db.session() as session:
                stmt = select(ValueEntry).where(
                    ValueEntry.prop_id == prop_id, ValueEntry.object_id == object_id
                )
                entry = session.exec(stmt).first()
            if entry is None:
                return Err(
                    StoreError.item_not_found(
                        "property_values", prop_id=prop_id, object_id=object_id
                    )
                )
            return Ok(entry)

        return await self._run(self._read, "get_value_for_property", query)

    async def try_get_value_by_id(self, id: int) -> Result[ValueEntry]:
        return await self._run(self._get, "get_value_by_id", ValueEntry, id)

    # =========================================================================
    # Sync workers (executor thread)
    # =========================================================================

    def _insert(self, operation: str, entry: SQLModel) -> Result[int]:
        class_name = entry.name if isinstance(entry, ClassEntry) else None
        try:
            with self.db.immediate_transaction() as session:
                session.add(entry)
                session.flush()
                new_id = entry.id  # type: ignore[attr-defined]
        except IntegrityError as e:
            return Err(self._classify_integrity_error(operation, e, class_name))
        except SQLAlchemyError as e:
            return Err(self._classify_failure(operation, e))
        logger.debug("row_inserted", operation=operation, id=new_id)
        return Ok(new_id)

    def _update(
        self,
        operation: str,
        model: type[SQLModel],
        id: int,
        apply: Callable[[Any], None],
        class_name: str | None = None,
    ) -> Result[None]:
        try:
            with self.db.immediate_transaction() as session:
                entry = session.get(model, id)
                if entry is None:
                    return Err(StoreError.item_not_found(model.__tablename__, id=id))  # type: ignore[attr-defined]
                apply(entry)
                session.add(entry)
        except IntegrityError as e:
            return Err(self._classify_integrity_error(operation, e, class_name))
        except SQLAlchemyError as e:
            return Err(self._classify_failure(operation, e))
        logger.debug("row_updated", operation=operation, id=id)
        return Ok(None)

    def _get(self, operation: str, model: type[T], id: int) -> Result[T]:
        def query() -> Result[T]:
            with self.db.session() as session:
                entry = session.get(model, id)
            if entry is None:
                return Err(StoreError.item_not_found(model.__tablename__, id=id))  # type: ignore[attr-defined]
            return Ok(entry)

        return self._read(operation, query)

    def _read(self, operation: str, query: Callable[[], Result[T]]) -> Result[T]:
        try:
            return query()
        except SQLAlchemyError as e:
            return Err(self._classify_failure(operation, e))

    @staticmethod
    def _classify_integrity_error(
        operation: str, error: IntegrityError, class_name: str | None
    ) -> StoreError:
        reason = _reason(error)
        if class_name is not None and "UNIQUE" in reason and "classes.name" in reason:
            return StoreError.duplicate_class_name(class_name)
        return StoreError.mystery(operation, reason)

    @staticmethod
    def _classify_failure(operation: str, error: SQLAlchemyError) -> StoreError:
        reason = _reason(error)
        logger.warning("store_operation_failed", operation=operation, reason=reason)
        if isinstance(error, OperationalError) and _is_database_locked_error(error):
            return StoreError.busy(operation, reason)
        return StoreError.mystery(operation, reason)
