"""Dumper - serialize a live entity into a Dump.

Field handling:
- Skipped: the id key, the revision key and ``created`` / ``changed`` fields.
- The bundle key is written as the plain bundle string.
- Simple values are flattened: ``[{"value": "Hello"}]`` becomes ``"Hello"``.
- Reference items are rewritten from ``target_id`` to the dependency name of
  their target, which is also registered as a dependency of the dump.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from ..constants import REFERENCE_ENTITY_KEY, REFERENCE_TARGET_KEY, SKIPPED_FIELD_TYPES
from ..store.protocol import EntityHandle, EntityStore
from ..store.repository import dependency_name_of
from ..store.schema import EntityTypeDefinition, FieldDefinition, FieldType
from ..utils.files import hash_file, local_path
from .builder import DumpBuilder
from .models import Blob, Dump

logger = structlog.get_logger(__name__)


class Dumper:
    """Create dumps of live entities."""

    def __init__(
        self,
        store: EntityStore,
        stream_wrappers: Mapping[str, str | Path] | None = None,
    ) -> None:
        """
        Initialize dumper.

        Args:
            store: Live entity store, for schema lookups and reference targets
            stream_wrappers: Scheme to directory mapping used to hash blobs
        """
        self.store = store
        self.stream_wrappers = dict(stream_wrappers or {})

    def dump(self, entity: EntityHandle) -> Dump:
        """
        Create the dump of an entity.

        Args:
            entity: Live entity

        Returns:
            The dump, with dependencies discovered from reference fields

        Raises:
            SchemaMismatchError: A field type of the entity is not defined
        """
        entity_type = self.store.get_entity_type(entity.entity_type_id)
        builder = DumpBuilder()

        builder.set_entity_type_id(entity.entity_type_id)
        builder.set_bundle(entity.bundle)
        builder.set_uuid(entity.uuid)
        builder.set_fields(self._get_entity_field_values(entity, entity_type, builder))

        if entity_type.blob_uri_field:
            uri = self._get_blob_uri(entity, entity_type.blob_uri_field)
            if uri:
                path = local_path(uri, self.stream_wrappers)
                builder.set_blob(Blob.from_uri(uri, hash_file(path)))

        dump = builder.get()
        logger.debug(
            "Dumped entity",
            dependency_name=dump.dependency_name,
            field_count=len(dump.fields),
            dependency_count=len(dump.all_dependency_names()),
        )
        return dump

    def _get_entity_field_values(
        self,
        entity: EntityHandle,
        entity_type: EntityTypeDefinition,
        builder: DumpBuilder,
    ) -> dict[str, Any]:
        """Get the dumped values of all dumped fields, sorted by field name."""
        fields: dict[str, Any] = {}

        bundle_key = entity_type.get_key("bundle")
        if bundle_key:
            fields[bundle_key] = entity.bundle

        definitions = self.store.get_field_definitions(entity.entity_type_id, entity.bundle)
        for field_name in self._list_dumped_field_names(entity_type, definitions):
            definition = definitions[field_name]
            field_type = self.store.get_field_type(definition.type)
            fields[field_name] = self._get_field_value(
                entity.get(field_name), definition, field_type, builder
            )

        return dict(sorted(fields.items()))

    def _list_dumped_field_names(
        self,
        entity_type: EntityTypeDefinition,
        definitions: Mapping[str, FieldDefinition],
    ) -> list[str]:
        """
        List the names of the fields that go into the dump.

        Not dumped: the id, revision and bundle keys, and ``created`` /
        ``changed`` fields.
        """
        skipped = {
            entity_type.get_key("id"),
            entity_type.get_key("revision"),
            entity_type.get_key("bundle"),
        }
        return sorted(
            name
            for name, definition in definitions.items()
            if name not in skipped and definition.type not in SKIPPED_FIELD_TYPES
        )

    def _get_field_value(
        self,
        items: list[dict[str, Any]],
        definition: FieldDefinition,
        field_type: FieldType,
        builder: DumpBuilder,
    ) -> Any:
        if field_type.reference:
            return self._process_reference_items(items, definition, builder)
        return self._simplify_field_value(items, field_type)

    @staticmethod
    def _simplify_field_value(items: list[dict[str, Any]], field_type: FieldType) -> Any:
        """
        Flatten a single item carrying only the main property.

        ``[{"value": "SIMPLE_VALUE"}]`` becomes ``"SIMPLE_VALUE"``; every other
        shape is kept as is.
        """
        if len(items) == 1 and isinstance(items[0], dict) and field_type.simplifies(items[0]):
            return items[0][field_type.main_property]
        return items

    def _process_reference_items(
        self,
        items: list[dict[str, Any]],
        definition: FieldDefinition,
        builder: DumpBuilder,
    ) -> list[dict[str, Any]]:
        """
        Replace reference targets with dependency names.

        Items whose target cannot be loaded keep their raw ``target_id``.
        """
        processed = []

        for orig_item in items:
            item = dict(orig_item)
            target = self._load_target(definition, item.get(REFERENCE_TARGET_KEY))

            if target is not None:
                key, dependency_name = dependency_name_of(self.store, target)
                del item[REFERENCE_TARGET_KEY]
                item[REFERENCE_ENTITY_KEY] = dependency_name
                builder.add_dependency(key, dependency_name)
            else:
                logger.debug(
                    "Reference target not found",
                    field=definition.name,
                    target_type=definition.target_type,
                    target_id=item.get(REFERENCE_TARGET_KEY),
                )

            processed.append(item)

        return processed

    def _load_target(self, definition: FieldDefinition, target_id: Any) -> EntityHandle | None:
        if target_id is None or definition.target_type is None:
            return None
        return self.store.load(definition.target_type, target_id)

    def _get_blob_uri(self, entity: EntityHandle, field_name: str) -> str | None:
        """Get the URI held by the main property of a file-like entity's URI field."""
        items = entity.get(field_name)
        if not items:
            return None

        main_property = "value"
        definition = self.store.get_field_definitions(entity.entity_type_id, entity.bundle).get(
            field_name
        )
        if definition is not None:
            main_property = self.store.get_field_type(definition.type).main_property or "value"

        return items[0].get(main_property)
