"""Interface of the live entity store.

Content deploy does not own the live store. Everything it needs from one is
listed here; ``content_deploy.store.memory`` ships a reference
implementation.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from .schema import EntityTypeDefinition, FieldDefinition, FieldType


@runtime_checkable
class EntityHandle(Protocol):
    """A live record."""

    entity_type_id: str
    bundle: str
    uuid: str
    id: int | str | None

    def get(self, field_name: str) -> list[dict[str, Any]]:
        """Get a field value as a list of items, each a property mapping."""
        ...

    def set(self, field_name: str, value: Any) -> None:
        """Set a field value: a list of items or a main-property scalar."""
        ...


@runtime_checkable
class EntityStore(Protocol):
    """Live store operations consumed by content deploy."""

    def get_entity_type(self, entity_type_id: str) -> EntityTypeDefinition:
        """
        Get an entity type definition.

        Raises:
            SchemaMismatchError: The entity type is not defined
        """
        ...

    def get_field_definitions(
        self, entity_type_id: str, bundle: str
    ) -> Mapping[str, FieldDefinition]:
        """Get the field definitions of a bundle, keyed by field name."""
        ...

    def get_field_type(self, type_name: str) -> FieldType:
        """
        Get a field type descriptor.

        Raises:
            SchemaMismatchError: The field type is not defined
        """
        ...

    def load(self, entity_type_id: str, entity_id: int | str) -> EntityHandle | None:
        """Look up an entity by its identity."""
        ...

    def load_by_properties(self, entity_type_id: str, **properties: Any) -> list[EntityHandle]:
        """Look up entities whose field main values equal the given properties."""
        ...

    def create(self, entity_type_id: str, values: Mapping[str, Any]) -> EntityHandle:
        """Build a new, unsaved entity from field values."""
        ...

    def save(self, entity: EntityHandle) -> None:
        """
        Persist an entity.

        Raises:
            EntityValidationError: The entity failed validation
        """
        ...

    def query(
        self,
        entity_type_id: str,
        bundle: str | None = None,
        uuid: str | None = None,
    ) -> list[int | str]:
        """List entity identities of a type, optionally narrowed by bundle and uuid."""
        ...
