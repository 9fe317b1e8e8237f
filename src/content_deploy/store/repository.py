"""Entity lookups by dependency name on top of an EntityStore."""

from collections.abc import Iterator
from typing import TYPE_CHECKING

import structlog

from ..constants import BASENAME_SEPARATOR, CONFIG_DEPENDENCY, CONTENT_DEPENDENCY
from ..dependency.names import (
    format_config_dependency_name,
    format_dependency_name,
    parse_dependency_name,
)
from ..utils.exceptions import SchemaMismatchError
from .protocol import EntityHandle, EntityStore

if TYPE_CHECKING:
    from ..dump.models import Dump

logger = structlog.get_logger(__name__)


def dependency_name_of(store: EntityStore, entity: EntityHandle) -> tuple[str, str]:
    """
    Get the dependency kind and name of a live entity.

    Configuration entities are addressed as ``config:<entity_type>.<id>``,
    content entities as ``<entity_type>:<bundle>:<uuid>``.

    Args:
        store: Live store, for the entity type definition
        entity: The entity

    Returns:
        Tuple of (dependency kind, dependency name)
    """
    entity_type = store.get_entity_type(entity.entity_type_id)
    if entity_type.is_config:
        config_name = f"{entity.entity_type_id}{BASENAME_SEPARATOR}{entity.id}"
        return CONFIG_DEPENDENCY, format_config_dependency_name(config_name)
    return CONTENT_DEPENDENCY, format_dependency_name(
        entity.entity_type_id, entity.bundle, entity.uuid
    )


class EntityRepository:
    """Load live entities by dependency name, dump or UUID."""

    def __init__(self, store: EntityStore) -> None:
        """
        Initialize repository.

        Args:
            store: Live entity store
        """
        self.store = store

    def load_entity_by_dependency_name(self, dependency_name: str) -> EntityHandle | None:
        """
        Load the existing entity of a dependency name.

        Args:
            dependency_name: Content or configuration dependency name

        Returns:
            The entity, or None if it does not exist or its entity type is
            not defined in the live schema
        """
        dependency = parse_dependency_name(dependency_name)

        if dependency.kind == CONFIG_DEPENDENCY:
            config_name = dependency.config_name or ""
            entity_type_id, _, entity_id = config_name.partition(BASENAME_SEPARATOR)
            if not entity_type_id or not entity_id:
                return None
            return self.store.load(entity_type_id, entity_id)

        if not dependency.entity_type or not dependency.uuid:
            return None

        try:
            entity = self.load_entity_by_uuid(dependency.entity_type, dependency.uuid)
        except SchemaMismatchError:
            logger.debug(
                "Entity type of dependency is not defined",
                dependency_name=dependency_name,
                entity_type=dependency.entity_type,
            )
            return None

        if entity is not None and dependency.bundle and entity.bundle != dependency.bundle:
            logger.warning(
                "Entity bundle differs from dependency name",
                dependency_name=dependency_name,
                bundle=entity.bundle,
            )
        return entity

    def load_entity_by_dump(self, dump: "Dump") -> EntityHandle | None:
        """Load the existing entity a dump was taken from."""
        return self.load_entity_by_uuid(dump.entity_type_id, dump.uuid)

    def load_entity_by_uuid(self, entity_type_id: str, uuid: str) -> EntityHandle | None:
        """
        Load an entity by UUID.

        Args:
            entity_type_id: Entity type to load from
            uuid: UUID of the entity

        Returns:
            The entity, or None if there is no entity with the UUID
        """
        entity_type = self.store.get_entity_type(entity_type_id)
        uuid_key = entity_type.get_key("uuid")
        if uuid_key is None:
            return None

        entities = self.store.load_by_properties(entity_type_id, **{uuid_key: uuid})
        return entities[0] if entities else None


class EntityDependencyQuery:
    """Enumerate the entities matched by a (possibly coarse) dependency name."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def execute(
        self, dependency_name: str
    ) -> Iterator[tuple[int | str, str, str | None, str | None]]:
        """
        Query the entity IDs a dependency name covers.

        ``node`` matches every node, ``node:article`` every article and
        ``node:article:<uuid>`` one article.

        Args:
            dependency_name: The dependency name

        Yields:
            Tuples of (entity id, entity type, bundle, uuid)

        Raises:
            SchemaMismatchError: The entity type is not defined
        """
        dependency = parse_dependency_name(dependency_name)
        if not dependency.entity_type:
            raise SchemaMismatchError(f"Dependency name '{dependency_name}' has no entity type.")

        entity_type = self.store.get_entity_type(dependency.entity_type)

        bundle = dependency.bundle or None
        uuid = dependency.uuid if bundle else None
        if bundle and entity_type.get_key("bundle") is None:
            # Single-bundle types have no bundle key to filter on
            bundle = None

        ids = self.store.query(entity_type.id, bundle=bundle, uuid=uuid)
        logger.debug("Queried entities", dependency_name=dependency_name, count=len(ids))

        for entity_id in ids:
            yield entity_id, dependency.entity_type, dependency.bundle, dependency.uuid
