"""In-memory entity store, optionally backed by a YAML snapshot file.

This is the reference implementation of ``EntityStore``. Field values are
lists of items, each item a mapping of property name to value:

    {"title": [{"value": "Hello"}], "field_tags": [{"target_id": 3}]}

``set()`` and ``create()`` accept the shorthand forms the restorer produces
(a main-property scalar, or reference items carrying a live ``entity``);
``save()`` normalizes them.
"""

import copy
import uuid as uuid_lib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from ..constants import REFERENCE_ENTITY_KEY, REFERENCE_TARGET_KEY
from ..utils.exceptions import EntityValidationError, SchemaMismatchError
from .schema import EntityTypeDefinition, FieldDefinition, FieldType

logger = structlog.get_logger(__name__)


DEFAULT_FIELD_TYPES: tuple[FieldType, ...] = (
    FieldType(name="integer"),
    FieldType(name="string"),
    FieldType(name="string_long"),
    FieldType(name="text_long"),
    FieldType(name="text_with_summary"),
    FieldType(name="boolean"),
    FieldType(name="uuid"),
    FieldType(name="language"),
    FieldType(name="uri"),
    FieldType(name="created"),
    FieldType(name="changed"),
    FieldType(name="link", main_property="uri"),
    FieldType(name="entity_reference", main_property=REFERENCE_TARGET_KEY, reference=True),
    FieldType(name="image", main_property=REFERENCE_TARGET_KEY, reference=True),
    FieldType(name="file", main_property=REFERENCE_TARGET_KEY, reference=True),
)


@dataclass
class Entity:
    """
    A record held by the in-memory store.

    Attributes:
        entity_type_id: Entity type
        bundle: Bundle, the entity type ID for single-bundle types
        uuid: UUID
        id: Identity, assigned on first save for content entities
        values: Field name to raw or normalized item list
    """

    entity_type_id: str
    bundle: str
    uuid: str
    id: int | str | None = None
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def is_new(self) -> bool:
        """Whether the entity was never saved."""
        return self.id is None

    def get(self, field_name: str) -> list[dict[str, Any]]:
        """Get a copy of a field's items."""
        value = self.values.get(field_name, [])
        return copy.deepcopy(value) if isinstance(value, list) else [copy.deepcopy(value)]

    def set(self, field_name: str, value: Any) -> None:
        """Set a field value; normalized on save."""
        self.values[field_name] = value


class InMemoryEntityStore:
    """
    Entity store keeping schema and records in dictionaries.

    Schema is declared with ``define_field_type``, ``define_entity_type`` and
    ``define_bundle``, or loaded with ``from_dict``.
    """

    def __init__(self) -> None:
        """Initialize an empty store with the default field types."""
        self._field_types: dict[str, FieldType] = {t.name: t for t in DEFAULT_FIELD_TYPES}
        self._entity_types: dict[str, EntityTypeDefinition] = {}
        self._base_fields: dict[str, dict[str, FieldDefinition]] = {}
        self._bundle_fields: dict[tuple[str, str], dict[str, FieldDefinition]] = {}
        self._entities: dict[str, dict[str, Entity]] = {}
        self._next_ids: dict[str, int] = {}

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    def define_field_type(self, field_type: FieldType) -> None:
        """Register or replace a field type."""
        self._field_types[field_type.name] = field_type

    def define_entity_type(
        self,
        entity_type: EntityTypeDefinition,
        base_fields: Iterable[FieldDefinition] = (),
    ) -> None:
        """
        Register an entity type with the fields shared by all its bundles.

        Args:
            entity_type: Entity type definition
            base_fields: Base field definitions
        """
        self._entity_types[entity_type.id] = entity_type
        self._base_fields[entity_type.id] = {f.name: f for f in base_fields}
        self._entities.setdefault(entity_type.id, {})
        self._next_ids.setdefault(entity_type.id, 1)

    def define_bundle(
        self, entity_type_id: str, bundle: str, fields: Iterable[FieldDefinition] = ()
    ) -> None:
        """Register the bundle-specific fields of a bundle."""
        self.get_entity_type(entity_type_id)
        self._bundle_fields[(entity_type_id, bundle)] = {f.name: f for f in fields}

    def get_entity_type(self, entity_type_id: str) -> EntityTypeDefinition:
        """Get an entity type definition."""
        try:
            return self._entity_types[entity_type_id]
        except KeyError:
            raise SchemaMismatchError(
                f"Entity type '{entity_type_id}' is not defined.", entity_type_id
            ) from None

    def get_field_definitions(
        self, entity_type_id: str, bundle: str
    ) -> dict[str, FieldDefinition]:
        """Get base and bundle field definitions of a bundle."""
        self.get_entity_type(entity_type_id)
        definitions = dict(self._base_fields.get(entity_type_id, {}))
        definitions.update(self._bundle_fields.get((entity_type_id, bundle), {}))
        return definitions

    def get_field_type(self, type_name: str) -> FieldType:
        """Get a field type descriptor."""
        try:
            return self._field_types[type_name]
        except KeyError:
            raise SchemaMismatchError(
                f"Field type '{type_name}' is not defined.", field_name=type_name
            ) from None

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def load(self, entity_type_id: str, entity_id: int | str) -> Entity | None:
        """Look up an entity by identity."""
        return self._entities.get(entity_type_id, {}).get(str(entity_id))

    def load_by_properties(self, entity_type_id: str, **properties: Any) -> list[Entity]:
        """Look up entities whose fields' main values equal the given properties."""
        self.get_entity_type(entity_type_id)
        matches = []
        for entity in self._entities.get(entity_type_id, {}).values():
            if all(
                self._main_value(entity, name) == value for name, value in properties.items()
            ):
                matches.append(entity)
        return matches

    def create(self, entity_type_id: str, values: Mapping[str, Any]) -> Entity:
        """
        Build a new, unsaved entity.

        A UUID is generated when the values carry none.

        Args:
            entity_type_id: Entity type
            values: Field values

        Returns:
            The unsaved entity
        """
        entity_type = self.get_entity_type(entity_type_id)
        entity = Entity(entity_type_id=entity_type_id, bundle=entity_type_id, uuid="")
        for field_name, value in values.items():
            entity.set(field_name, value)

        uuid_key = entity_type.get_key("uuid")
        if uuid_key and not self._main_value(entity, uuid_key):
            entity.set(uuid_key, str(uuid_lib.uuid4()))

        self._sync_identity(entity)
        return entity

    def save(self, entity: Entity) -> None:
        """
        Normalize and persist an entity.

        Raises:
            EntityValidationError: Unknown field, unsaved reference target or
                duplicate UUID
        """
        entity_type = self.get_entity_type(entity.entity_type_id)
        self._sync_identity(entity)
        definitions = self.get_field_definitions(entity.entity_type_id, entity.bundle)

        normalized = {}
        for field_name, value in entity.values.items():
            if field_name not in definitions:
                raise EntityValidationError(
                    f"Field '{field_name}' is not defined on "
                    f"{entity.entity_type_id}:{entity.bundle}"
                )
            field_type = self.get_field_type(definitions[field_name].type)
            normalized[field_name] = self._normalize_items(field_type, value)
        entity.values = normalized

        for other in self._entities[entity.entity_type_id].values():
            if other is not entity and other.uuid and other.uuid == entity.uuid:
                raise EntityValidationError(
                    f"UUID {entity.uuid} is already used by "
                    f"{entity.entity_type_id} {other.id}"
                )

        if entity.id is None:
            entity.id = self._next_ids[entity.entity_type_id]
            id_key = entity_type.get_key("id")
            if id_key:
                entity.values[id_key] = [{"value": entity.id}]
        if isinstance(entity.id, int):
            self._next_ids[entity.entity_type_id] = max(
                self._next_ids[entity.entity_type_id], entity.id + 1
            )

        self._entities[entity.entity_type_id][str(entity.id)] = entity
        logger.debug(
            "Saved entity", entity_type=entity.entity_type_id, id=entity.id, uuid=entity.uuid
        )

    def query(
        self,
        entity_type_id: str,
        bundle: str | None = None,
        uuid: str | None = None,
    ) -> list[int | str]:
        """List entity IDs of a type, optionally narrowed by bundle and UUID."""
        self.get_entity_type(entity_type_id)
        ids = []
        for entity in self._entities.get(entity_type_id, {}).values():
            if bundle is not None and entity.bundle != bundle:
                continue
            if uuid is not None and entity.uuid != uuid:
                continue
            ids.append(entity.id)
        return sorted(ids, key=str)

    # -------------------------------------------------------------------------
    # Snapshot (de)serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Export schema and records as a plain mapping."""
        entity_types = []
        for entity_type in self._entity_types.values():
            bundles = {
                bundle: [f.model_dump(exclude_none=True) for f in fields.values()]
                for (type_id, bundle), fields in self._bundle_fields.items()
                if type_id == entity_type.id
            }
            entity_types.append(
                {
                    **entity_type.model_dump(exclude_none=True),
                    "base_fields": [
                        f.model_dump(exclude_none=True)
                        for f in self._base_fields[entity_type.id].values()
                    ],
                    "bundles": bundles,
                }
            )

        default_names = {t.name for t in DEFAULT_FIELD_TYPES}
        return {
            "field_types": [
                t.model_dump() for t in self._field_types.values() if t.name not in default_names
            ],
            "entity_types": entity_types,
            "entities": [
                {"entity_type": type_id, "id": entity.id, "values": entity.values}
                for type_id, entities in self._entities.items()
                for entity in entities.values()
            ],
        }

    def load_dict(self, data: Mapping[str, Any]) -> None:
        """
        Load schema and records from a mapping produced by ``to_dict``.

        Args:
            data: Snapshot mapping
        """
        for field_type in data.get("field_types") or []:
            self.define_field_type(FieldType.model_validate(field_type))

        for raw_type in data.get("entity_types") or []:
            raw_type = dict(raw_type)
            base_fields = raw_type.pop("base_fields", [])
            bundles = raw_type.pop("bundles", {}) or {}
            self.define_entity_type(
                EntityTypeDefinition.model_validate(raw_type),
                [FieldDefinition.model_validate(f) for f in base_fields],
            )
            for bundle, fields in bundles.items():
                self.define_bundle(
                    raw_type["id"], bundle, [FieldDefinition.model_validate(f) for f in fields]
                )

        for raw_entity in data.get("entities") or []:
            entity = Entity(
                entity_type_id=raw_entity["entity_type"],
                bundle=raw_entity["entity_type"],
                uuid="",
                id=raw_entity["id"],
                values=dict(raw_entity.get("values") or {}),
            )
            InMemoryEntityStore.save(self, entity)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InMemoryEntityStore":
        """Create a store from a snapshot mapping."""
        store = cls()
        store.load_dict(data)
        return store

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _main_value(self, entity: Entity, field_name: str) -> Any:
        """Get the main property value of a field's first item."""
        value = entity.values.get(field_name)
        if value is None or value == []:
            return None
        item = value[0] if isinstance(value, list) else value
        if not isinstance(item, dict):
            return item
        entity_type = self.get_entity_type(entity.entity_type_id)
        definition = self._base_fields.get(entity_type.id, {}).get(field_name)
        main_property = "value"
        if definition is not None:
            main_property = self.get_field_type(definition.type).main_property or "value"
        return item.get(main_property)

    def _sync_identity(self, entity: Entity) -> None:
        """Copy bundle and UUID from their key fields onto the entity attributes."""
        entity_type = self.get_entity_type(entity.entity_type_id)

        bundle_key = entity_type.get_key("bundle")
        if bundle_key:
            bundle = self._main_value(entity, bundle_key)
            if not bundle:
                raise EntityValidationError(
                    f"Missing bundle field '{bundle_key}' on {entity.entity_type_id}"
                )
            entity.bundle = str(bundle)
        else:
            entity.bundle = entity.entity_type_id

        uuid_key = entity_type.get_key("uuid")
        if uuid_key:
            entity.uuid = str(self._main_value(entity, uuid_key) or "")

        id_key = entity_type.get_key("id")
        if entity.id is None and id_key:
            entity.id = self._main_value(entity, id_key)

    def _normalize_items(self, field_type: FieldType, value: Any) -> list[dict[str, Any]]:
        """Convert a field value to a list of item mappings."""
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]

        items = []
        for raw_item in value:
            if isinstance(raw_item, dict):
                item = dict(raw_item)
            else:
                item = {field_type.main_property or "value": raw_item}

            if field_type.reference and REFERENCE_ENTITY_KEY in item:
                target = item.pop(REFERENCE_ENTITY_KEY)
                if getattr(target, "id", None) is None:
                    raise EntityValidationError(
                        f"Referenced entity {target!r} must be saved before it is referenced"
                    )
                item[REFERENCE_TARGET_KEY] = target.id

            items.append(item)
        return items


class SnapshotEntityStore(InMemoryEntityStore):
    """
    In-memory store persisted to a YAML snapshot file on every save.

    Used by the CLI as a stand-in for a real site.
    """

    def __init__(self, path: str | Path) -> None:
        """
        Initialize the store, loading the snapshot if it exists.

        Args:
            path: Snapshot file
        """
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
            self.load_dict(data)

    def save(self, entity: Entity) -> None:
        """Persist an entity and rewrite the snapshot file."""
        super().save(entity)
        self.write_snapshot()

    def write_snapshot(self) -> None:
        """Write schema and records to the snapshot file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False),
            encoding="utf-8",
        )
