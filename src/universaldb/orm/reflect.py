"""Type reflection: structural metadata derived from live instances.

Nothing here touches storage. A class declares the fields named in its own
class annotations (dataclass fields included) plus the ``self.<name>``
attributes its own ``__init__`` assigns, read from the method source when it
is available. Private (``_``-prefixed) attributes and ``ClassVar``
annotations are never fields.

Only plain user classes are stored as objects: instances of builtin
subclasses, enums and value types without instance fields (``Decimal``,
``datetime``, ``UUID``) are not.

The reflector works on an ``InstanceView``: a type plus the field values
visible at that type's level. ``super_view`` trims a view to the shape its
superclass declares, which is how ancestor classes get reconciled and how
inherited fields find their owning Property row.
"""

from __future__ import annotations

import ast
import enum
import functools
import inspect
import sys
import textwrap
import typing
from dataclasses import dataclass, field
from typing import Any, ClassVar

from universaldb.schema.models import UNKNOWN_TYPE

# Closed set of scalar tags; values of these types are JSON-encoded
SCALAR_TYPES: dict[str, type] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "dict": dict,
    "list": list,
}


@dataclass(frozen=True, slots=True)
class PropertyDefinition:
    name: str
    type_name: str


@dataclass(frozen=True, slots=True)
class ClassDefinition:
    name: str
    properties: tuple[PropertyDefinition, ...] = ()


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """What reflection knows about one type level of an instance."""

    type_name: str
    super_type_name: str | None
    own_properties: tuple[PropertyDefinition, ...] = ()


@dataclass(frozen=True)
class InstanceView:
    """An instance seen at one level of its inheritance chain."""

    type: type | None
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def type_name(self) -> str:
        return self.type.__name__ if self.type is not None else UNKNOWN_TYPE


if sys.version_info >= (3, 14):
    import annotationlib

    def _own_annotations(cls: type) -> dict[str, Any]:
        return annotationlib.get_annotations(cls, format=annotationlib.Format.FORWARDREF)

else:

    def _own_annotations(cls: type) -> dict[str, Any]:
        return inspect.get_annotations(cls)


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        head = annotation.split("[", 1)[0].strip()
        return head in ("ClassVar", "typing.ClassVar")
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def type_name_of(value: Any) -> str:
    """Runtime type name of a value, or ``Unknown`` for None."""
    if value is None:
        return UNKNOWN_TYPE
    return type(value).__name__


def is_scalar(value: Any) -> bool:
    return type(value) in SCALAR_TYPES.values()


def is_named_object(value: Any) -> bool:
    """True for instances of plain user classes (stored as their own rows).

    The class must not derive from a builtin or an enum, and its instances
    must carry fields: an instance ``__dict__`` or declared fields.
    """
    if value is None or isinstance(value, enum.Enum):
        return False
    cls = type(value)
    if any(base.__module__ == "builtins" and base is not object for base in cls.__mro__):
        return False
    return hasattr(value, "__dict__") or bool(chain_field_names(cls))


def super_type_of(cls: type | None) -> type | None:
    """Immediate domain superclass, or None when the class derives from object."""
    if cls is None or not cls.__bases__:
        return None
    base = cls.__bases__[0]
    return None if base is object else base


def declared_field_names(cls: type) -> list[str]:
    """Field names declared directly on ``cls`` (not on its ancestors)."""
    names = [
        name
        for name, annotation in _own_annotations(cls).items()
        if not name.startswith("_") and not _is_class_var(annotation)
    ]
    names.extend(n for n in _init_assigned_names(cls) if n not in names)
    return names


@functools.lru_cache(maxsize=None)
def _init_assigned_names(cls: type) -> tuple[str, ...]:
    """Public ``self.<name>`` targets assigned in the class's own ``__init__``."""
    init = cls.__dict__.get("__init__")
    if not inspect.isfunction(init):
        return ()
    try:
        tree = ast.parse(textwrap.dedent(inspect.getsource(init)))
    except (OSError, TypeError, SyntaxError):
        # Generated (dataclass) or sourceless methods; annotations cover those
        return ()

    func = tree.body[0]
    if not isinstance(func, ast.FunctionDef) or not func.args.args:
        return ()
    self_name = func.args.args[0].arg

    names: list[str] = []
    for node in ast.walk(func):
        if isinstance(node, ast.Assign):
            targets = node.targets
        elif isinstance(node, (ast.AnnAssign, ast.AugAssign)):
            targets = [node.target]
        else:
            continue
        for target in targets:
            elements = target.elts if isinstance(target, ast.Tuple) else [target]
            for element in elements:
                if (
                    isinstance(element, ast.Attribute)
                    and isinstance(element.value, ast.Name)
                    and element.value.id == self_name
                    and not element.attr.startswith("_")
                    and element.attr not in names
                ):
                    names.append(element.attr)
    return tuple(names)


def _type_chain(cls: type | None) -> list[type]:
    """``cls`` and its domain ancestors, root first."""
    chain: list[type] = []
    while cls is not None:
        chain.append(cls)
        cls = super_type_of(cls)
    chain.reverse()
    return chain


def chain_field_names(cls: type | None) -> list[str]:
    """Fields declared on ``cls`` or any domain ancestor, root first."""
    names: list[str] = []
    for level in _type_chain(cls):
        names.extend(n for n in declared_field_names(level) if n not in names)
    return names


def instance_fields(instance: Any) -> dict[str, Any]:
    """Public field values of an instance, declared fields first."""
    if instance is None:
        return {}
    raw: dict[str, Any] = getattr(instance, "__dict__", {})
    values: dict[str, Any] = {}
    for name in chain_field_names(type(instance)):
        if name in raw:
            values[name] = raw[name]
        elif hasattr(instance, name):
            values[name] = getattr(instance, name)
    for name, value in raw.items():
        if not name.startswith("_") and name not in values:
            values[name] = value
    return values


def view_of(instance: Any) -> InstanceView:
    if instance is None:
        return InstanceView(None)
    return InstanceView(type(instance), instance_fields(instance))


def super_view(view: InstanceView) -> InstanceView | None:
    """The view trimmed to the shape its superclass declares."""
    base = super_type_of(view.type)
    if base is None:
        return None
    inherited = set(chain_field_names(base))
    return InstanceView(base, {k: v for k, v in view.values.items() if k in inherited})


def reflect(target: Any) -> TypeDescriptor:
    """Describe an instance (or view): type name, superclass name, own properties.

    Own properties are the fields not declared anywhere on the superclass
    chain, each tagged with the runtime type of its current value.
    """
    view = target if isinstance(target, InstanceView) else view_of(target)
    if view.type is None:
        return TypeDescriptor(UNKNOWN_TYPE, None)

    base = super_type_of(view.type)
    inherited = set(chain_field_names(base))
    own = tuple(
        PropertyDefinition(name, type_name_of(value))
        for name, value in view.values.items()
        if name not in inherited
    )
    return TypeDescriptor(
        type_name=view.type_name,
        super_type_name=base.__name__ if base is not None else None,
        own_properties=own,
    )


def class_definition_of(instance: Any) -> ClassDefinition | None:
    """Every field of a named object with its observed type; None otherwise."""
    if not is_named_object(instance):
        return None
    properties = tuple(
        PropertyDefinition(name, type_name_of(value))
        for name, value in instance_fields(instance).items()
    )
    return ClassDefinition(type(instance).__name__, properties)
