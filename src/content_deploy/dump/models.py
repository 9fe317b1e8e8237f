"""Dump and blob value objects.

A dump is the portable snapshot of one live record. Its YAML form is the
canonical text used both on disk and for diffing:

```yaml
entity_type: node
bundle: article
uuid: 5f0c8a52-...
fields:
  body:
  - value: <p>Hello</p>
    format: basic_html
  title: Hello
  field_tags:
  - entity: taxonomy_term:tags:97370a5d-...
dependencies:
  content:
  - taxonomy_term:tags:97370a5d-...
blob:            # file-like records only
  uri: public://images/cat.png
  hash: 2fd4e1c67a2d28fced849ee1bb76e7391b93eb12
  extension: .png
```
"""

import copy
import re
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Trailing ".ext" of the last path segment
_EXTENSION_PATTERN = re.compile(r"(\.[^/.]+)$")


class Blob(BaseModel):
    """
    A binary attachment of a dump.

    Attributes:
        uri: Location of the binary in the live store
        hash: SHA-1 of the binary content
        extension: Extension of the URI's last segment, including the dot
    """

    model_config = ConfigDict(frozen=True)

    uri: str
    hash: str
    extension: str | None = None

    @classmethod
    def from_uri(cls, uri: str, hash: str) -> "Blob":
        """
        Create a blob, deriving the extension from the URI.

        Args:
            uri: Blob URI
            hash: Content hash

        Returns:
            Blob instance
        """
        match = _EXTENSION_PATTERN.search(uri)
        extension = match.group(1) if match else None
        return cls(uri=uri, hash=hash, extension=extension)


class Dump(BaseModel):
    """
    Serialized snapshot of one record plus its outgoing references.

    Instances are built by ``DumpBuilder`` and never modified afterwards.
    Attributes cannot be reassigned, and ``fields`` and ``dependencies`` are
    deep copies of the values passed in, so a dump shares no mutable state
    with its builder. Consumers that hand values on, like ``DumpRestorer``,
    copy them again.

    Attributes:
        dependency_name: ``<entity_type>:<bundle>:<uuid>``
        entity_type_id: Entity type of the record
        bundle: Bundle of the record
        uuid: UUID of the record
        fields: Field name to dumped value
        dependencies: Dependency kind to referenced dependency names
        blob: Attached binary, for file-like records
    """

    model_config = ConfigDict(frozen=True)

    dependency_name: str
    entity_type_id: str
    bundle: str
    uuid: str
    fields: dict[str, Any] = Field(default_factory=dict)
    dependencies: dict[str, list[str]] = Field(default_factory=dict)
    blob: Blob | None = None

    @field_validator("fields", "dependencies", mode="before")
    @classmethod
    def copy_mapping(cls, v: Any) -> Any:
        """Detach the mapping from the caller's objects."""
        return copy.deepcopy(v)

    def dependency_keys(self) -> list[str]:
        """Get the dependency kinds present in this dump."""
        return list(self.dependencies)

    def dependencies_for(self, key: str) -> list[str]:
        """
        Get the dependency names of one kind.

        Args:
            key: Dependency kind, e.g. ``content`` or ``config``

        Returns:
            Dependency names, empty if the kind is absent
        """
        return list(self.dependencies.get(key, []))

    def all_dependency_names(self) -> list[str]:
        """Get all dependency names, kinds in order, without duplicates."""
        names: dict[str, None] = {}
        for key in self.dependency_keys():
            for name in self.dependencies_for(key):
                names[name] = None
        return list(names)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the document structure written to disk.

        Returns:
            dict with keys entity_type, bundle, uuid, fields, dependencies and blob
        """
        values: dict[str, Any] = {
            "entity_type": self.entity_type_id,
            "bundle": self.bundle,
            "uuid": self.uuid,
            "fields": dict(sorted(self.fields.items())),
            "dependencies": {key: list(names) for key, names in self.dependencies.items()},
        }

        if self.blob is not None:
            values["blob"] = {
                "uri": self.blob.uri,
                "hash": self.blob.hash,
                "extension": self.blob.extension,
            }

        return values

    def to_yaml(self) -> str:
        """Convert to the canonical YAML text."""
        return yaml.safe_dump(
            self.to_dict(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )


class DumpDocument(BaseModel):
    """Validation model for a dump document read from YAML."""

    model_config = ConfigDict(extra="forbid")

    entity_type: str
    bundle: str
    uuid: str
    fields: dict[str, Any] = Field(default_factory=dict)
    dependencies: dict[str, list[str]] = Field(default_factory=dict)
    blob: Blob | None = None
