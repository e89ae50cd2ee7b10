"""ORM module - mapping typed object graphs onto the universal schema.

- reflect: structural metadata from live instances (no I/O)
- registry: class-name -> type resolution for loads
- reconcile: Class/Property rows kept in line with observed instances
- serialize / deserialize: instance <-> Object/Value rows
"""

from universaldb.orm.deserialize import InstanceDeserializer
from universaldb.orm.reconcile import ReconcileResult, SchemaReconciler
from universaldb.orm.reflect import (
    ClassDefinition,
    InstanceView,
    PropertyDefinition,
    TypeDescriptor,
    class_definition_of,
    is_named_object,
    reflect,
    super_view,
    type_name_of,
    view_of,
)
from universaldb.orm.registry import TypeRegistry
from universaldb.orm.serialize import InstanceSerializer

__all__ = [
    "ClassDefinition",
    "InstanceDeserializer",
    "InstanceSerializer",
    "InstanceView",
    "PropertyDefinition",
    "ReconcileResult",
    "SchemaReconciler",
    "TypeDescriptor",
    "TypeRegistry",
    "class_definition_of",
    "is_named_object",
    "reflect",
    "super_view",
    "type_name_of",
    "view_of",
]
