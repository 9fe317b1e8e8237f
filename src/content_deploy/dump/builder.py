"""Dump Builder - stepwise construction and loading of dumps."""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from ..dependency.names import format_dependency_name
from ..utils.exceptions import DumpFormatError
from .models import Blob, Dump, DumpDocument

logger = structlog.get_logger(__name__)


class DumpBuilder:
    """
    Accumulate the parts of a dump, then finalize it once.

    Setters are chainable. ``get()`` derives ``dependency_name`` and
    ``dependencies`` on the first call only; later calls return the same Dump.

    Usage:
        dump = (
            DumpBuilder()
            .set_entity_type_id("node")
            .set_bundle("article")
            .set_uuid(uuid)
            .set_fields({"title": "Hello"})
            .add_dependency("content", "taxonomy_term:tags:97370a5d-...")
            .get()
        )
    """

    def __init__(self) -> None:
        """Initialize an empty builder."""
        self._values: dict[str, Any] = {}
        # Kind -> ordered set of names (dict keys keep insertion order)
        self._dependencies_by_key: dict[str, dict[str, None]] = {}
        self._dump: Dump | None = None

    def _set(self, name: str, value: Any) -> "DumpBuilder":
        if self._dump is not None:
            raise RuntimeError("Dump is already finalized")
        self._values[name] = value
        return self

    def set_entity_type_id(self, entity_type_id: str) -> "DumpBuilder":
        """Set the entity type ID."""
        return self._set("entity_type_id", entity_type_id)

    def set_bundle(self, bundle: str) -> "DumpBuilder":
        """Set the bundle."""
        return self._set("bundle", bundle)

    def set_uuid(self, uuid: str) -> "DumpBuilder":
        """Set the UUID."""
        return self._set("uuid", uuid)

    def set_fields(self, fields: dict[str, Any]) -> "DumpBuilder":
        """Set the dumped field values."""
        return self._set("fields", fields)

    def set_blob(self, blob: Blob) -> "DumpBuilder":
        """Set the blob."""
        return self._set("blob", blob)

    def set_dependencies(self, dependencies: dict[str, list[str]]) -> "DumpBuilder":
        """Set the dependencies as already derived, bypassing add_dependency()."""
        return self._set("dependencies", dependencies)

    def add_dependency(self, key: str, dependency_name: str) -> "DumpBuilder":
        """
        Register a referenced dependency.

        Args:
            key: Dependency kind (``content`` or ``config``)
            dependency_name: Name of the referenced unit

        Returns:
            The builder
        """
        if self._dump is not None:
            raise RuntimeError("Dump is already finalized")
        self._dependencies_by_key.setdefault(key, {})[dependency_name] = None
        return self

    def get(self) -> Dump:
        """
        Finalize and return the dump.

        Returns:
            The built Dump, identical on every call
        """
        if self._dump is not None:
            return self._dump

        values = dict(self._values)

        if "dependency_name" not in values:
            values["dependency_name"] = format_dependency_name(
                values["entity_type_id"], values["bundle"], values["uuid"]
            )

        if "dependencies" not in values:
            values["dependencies"] = {
                key: list(names) for key, names in self._dependencies_by_key.items()
            }

        self._dump = Dump(**values)
        return self._dump

    def load(self, values: dict[str, Any], path: str | Path | None = None) -> Dump:
        """
        Load the dump from a raw document structure.

        Args:
            values: Mapping with keys entity_type, bundle, uuid, fields, dependencies, blob
            path: Source file, used in error messages

        Returns:
            The loaded Dump

        Raises:
            DumpFormatError: The structure is not a valid dump document
        """
        if not isinstance(values, dict):
            raise DumpFormatError(
                f"Expected a mapping, got {type(values).__name__}", path
            )

        try:
            document = DumpDocument.model_validate(values)
        except PydanticValidationError as e:
            raise DumpFormatError(f"Invalid dump document: {e}", path) from e

        self.set_entity_type_id(document.entity_type)
        self.set_bundle(document.bundle)
        self.set_uuid(document.uuid)
        self.set_fields(document.fields)
        self.set_dependencies(document.dependencies)

        if document.blob is not None:
            self.set_blob(document.blob)

        return self.get()

    def load_yaml(self, content: str, path: str | Path | None = None) -> Dump:
        """
        Load the dump from YAML text.

        Raises:
            DumpFormatError: The text is not valid YAML or not a dump document
        """
        try:
            values = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise DumpFormatError(f"Invalid YAML: {e}", path) from e
        return self.load(values, path)

    def load_file(self, yaml_path: str | Path) -> Dump | None:
        """
        Load the dump from a YAML file.

        Args:
            yaml_path: Path of the dump file

        Returns:
            The Dump, or None if the file does not exist
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.is_file():
            return None

        logger.debug("Loading dump file", path=str(yaml_path))
        content = yaml_path.read_text(encoding="utf-8")
        return self.load_yaml(content, yaml_path)
