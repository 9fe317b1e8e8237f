"""Live entity store interface, reference implementation and lookups."""

from .protocol import EntityHandle, EntityStore
from .schema import EntityTypeDefinition, FieldDefinition, FieldType
from .memory import DEFAULT_FIELD_TYPES, Entity, InMemoryEntityStore, SnapshotEntityStore
from .repository import EntityDependencyQuery, EntityRepository, dependency_name_of
from .factory import load_store

__all__ = [
    "EntityHandle",
    "EntityStore",
    "EntityTypeDefinition",
    "FieldDefinition",
    "FieldType",
    "DEFAULT_FIELD_TYPES",
    "Entity",
    "InMemoryEntityStore",
    "SnapshotEntityStore",
    "EntityDependencyQuery",
    "EntityRepository",
    "dependency_name_of",
    "load_store",
]
