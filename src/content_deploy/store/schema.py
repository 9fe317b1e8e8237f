"""Schema descriptors supplied by the live store.

These models describe entity types, field definitions and field types. The
core only asks them a handful of questions: which fields exist for a bundle,
whether a field type is a reference, and which property is a field type's
main one.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..constants import CONFIG_DEPENDENCY, CONTENT_DEPENDENCY


class FieldType(BaseModel):
    """
    A field type such as ``string``, ``text_with_summary`` or ``entity_reference``.

    Attributes:
        name: Field type machine name
        main_property: Property holding the value of a simple item, None if the
            type has no single significant property
        reference: Whether items point at other entities through ``target_id``
    """

    model_config = ConfigDict(frozen=True)

    name: str
    main_property: str | None = "value"
    reference: bool = False

    def simplifies(self, item: dict) -> bool:
        """
        Check if a field item carries only this type's main property.

        Args:
            item: One field item

        Returns:
            bool: True if the item can be flattened to its main property value
        """
        return (
            self.main_property is not None
            and len(item) == 1
            and self.main_property in item
        )


class FieldDefinition(BaseModel):
    """
    A field attached to an entity type (base field) or to one bundle.

    Attributes:
        name: Field machine name
        type: Field type machine name
        target_type: Entity type referenced by reference fields
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    target_type: str | None = None


class EntityTypeDefinition(BaseModel):
    """
    An entity type such as ``node``, ``taxonomy_term`` or ``file``.

    Attributes:
        id: Entity type machine name
        kind: ``content`` for exportable records, ``config`` for configuration objects
        keys: Entity keys, e.g. ``{"id": "nid", "uuid": "uuid", "bundle": "type"}``
        blob_uri_field: Field holding the URI of an attached file, for file-like types
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: Literal["content", "config"] = CONTENT_DEPENDENCY
    keys: dict[str, str] = Field(default_factory=dict)
    blob_uri_field: str | None = None

    def get_key(self, key: str) -> str | None:
        """Get the field name of an entity key (``id``, ``uuid``, ``bundle``...)."""
        return self.keys.get(key)

    @property
    def key_fields(self) -> frozenset[str]:
        """Field names used by any entity key."""
        return frozenset(self.keys.values())

    @property
    def is_config(self) -> bool:
        """Whether entities of this type are configuration objects."""
        return self.kind == CONFIG_DEPENDENCY
