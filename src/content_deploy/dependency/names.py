"""Dependency-name codec.

A dependency name addresses one unit across stores:

- content records: ``<entity_type>:<bundle>:<uuid>``, e.g.
  ``taxonomy_term:tags:97370a5d-ea40-499d-a9a2-59f02d2820dc``
- configuration objects: ``config:<entity_type>.<id>``, e.g.
  ``config:filter_format.basic_html``

On disk ``:`` is replaced with ``.`` so that names double as file basenames.
"""

from typing import NamedTuple

from ..constants import (
    BASENAME_SEPARATOR,
    CONFIG_DEPENDENCY,
    CONFIG_DEPENDENCY_PREFIX,
    CONTENT_DEPENDENCY,
    DEPENDENCY_NAME_SEPARATOR,
)


class DependencyName(NamedTuple):
    """Components of a parsed dependency name."""

    entity_type: str | None
    bundle: str | None = None
    uuid: str | None = None

    @property
    def kind(self) -> str:
        """Dependency kind key: ``config`` or ``content``."""
        if self.entity_type == CONFIG_DEPENDENCY_PREFIX:
            return CONFIG_DEPENDENCY
        return CONTENT_DEPENDENCY

    @property
    def config_name(self) -> str | None:
        """Configuration object name for ``config:`` names, else None."""
        if self.kind == CONFIG_DEPENDENCY:
            return self.bundle
        return None


def parse_dependency_name(name: str) -> DependencyName:
    """
    Split a dependency name into its components.

    Missing trailing components become None rather than raising, so coarse
    names like ``node:article`` or ``node`` parse too.

    Args:
        name: Dependency name

    Returns:
        DependencyName with entity_type, bundle and uuid
    """
    tokens = name.split(DEPENDENCY_NAME_SEPARATOR, 2)
    tokens += [None] * (3 - len(tokens))
    return DependencyName(tokens[0] or None, tokens[1], tokens[2])


def format_dependency_name(entity_type: str, bundle: str, uuid: str) -> str:
    """Build a content dependency name from its components."""
    return DEPENDENCY_NAME_SEPARATOR.join((entity_type, bundle, uuid))


def format_config_dependency_name(config_name: str) -> str:
    """Build a configuration dependency name: ``config:<config_name>``."""
    return f"{CONFIG_DEPENDENCY_PREFIX}{DEPENDENCY_NAME_SEPARATOR}{config_name}"


def to_basename(name: str) -> str:
    """Map a dependency name to a filesystem-safe basename."""
    return name.replace(DEPENDENCY_NAME_SEPARATOR, BASENAME_SEPARATOR)


def from_basename(basename: str) -> str:
    """Map a dump file basename back to its dependency name."""
    return basename.replace(BASENAME_SEPARATOR, DEPENDENCY_NAME_SEPARATOR)
