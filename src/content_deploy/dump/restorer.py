"""Dump Restorer - turn dumped field values back into importable values."""

import copy
from typing import Any

import structlog

from ..constants import REFERENCE_ENTITY_KEY
from ..dependency.resolver import EntityDependencyResolver
from ..store.protocol import EntityStore
from ..store.schema import FieldDefinition
from ..utils.exceptions import SchemaMismatchError
from .models import Dump

logger = structlog.get_logger(__name__)


class DumpRestorer:
    """
    Convert a dump's fields against the current live schema.

    Reference items have their ``entity`` dependency name replaced with the
    live entity returned by the resolver. The resolver is only asked to look
    names up; it must already know every name the dump references.
    """

    def __init__(self, store: EntityStore, resolver: EntityDependencyResolver) -> None:
        """
        Initialize restorer.

        Args:
            store: Live entity store, for the current schema
            resolver: Resolves dependency names to live entities
        """
        self.store = store
        self.resolver = resolver

    def get_importable_fields(self, dump: Dump) -> dict[str, Any]:
        """
        Get all importable field values of a dump.

        Args:
            dump: The dump

        Returns:
            Field name to importable value

        Raises:
            SchemaMismatchError: A dumped field is no longer defined
            MissingDependencyError: A referenced dependency cannot be resolved
        """
        entity_type = self.store.get_entity_type(dump.entity_type_id)
        key_fields = entity_type.key_fields
        definitions = self.store.get_field_definitions(dump.entity_type_id, dump.bundle)

        fields: dict[str, Any] = {}
        # The store may normalize values in place; never hand it the dump's own
        for field_name, dump_value in copy.deepcopy(dump.fields).items():
            if field_name in key_fields:
                fields[field_name] = dump_value
                continue

            definition = definitions.get(field_name)
            if definition is None:
                raise SchemaMismatchError(
                    f"Field '{field_name}' of {dump.dependency_name} is not defined on "
                    f"{dump.entity_type_id}:{dump.bundle}.",
                    dump.entity_type_id,
                    field_name,
                )
            fields[field_name] = self._get_importable_field_value(definition, dump_value)

        return fields

    def _get_importable_field_value(self, definition: FieldDefinition, dump_value: Any) -> Any:
        field_type = self.store.get_field_type(definition.type)
        if field_type.reference:
            return self._process_reference_items(dump_value)
        return dump_value

    def _process_reference_items(self, dump_value: Any) -> list[Any]:
        """Resolve the dependency name of every reference item."""
        if dump_value is None:
            return []
        dump_items = dump_value if isinstance(dump_value, list) else [dump_value]

        items = []
        for dump_item in dump_items:
            if isinstance(dump_item, dict) and REFERENCE_ENTITY_KEY in dump_item:
                item = dict(dump_item)
                item[REFERENCE_ENTITY_KEY] = self.resolver.resolve_entity_dependency(
                    dump_item[REFERENCE_ENTITY_KEY]
                )
                items.append(item)
            else:
                items.append(dump_item)

        return items
