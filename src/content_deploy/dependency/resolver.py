"""Resolver capabilities for entity dependencies.

The importer plays two roles during one run:

- it *ensures* dependencies (imports or loads them, populating its entity
  cache; this may perform I/O), and
- it *resolves* dependencies for the restorer (cache lookup only).

The restorer only ever receives the narrower ``EntityDependencyResolver``,
so field conversion can never trigger new imports.
"""

from typing import Protocol, runtime_checkable

from ..store.protocol import EntityHandle


@runtime_checkable
class EntityDependencyResolver(Protocol):
    """Looks up already-prepared entities by dependency name."""

    def resolve_entity_dependency(self, dependency_name: str) -> EntityHandle:
        """
        Get the live entity for a dependency name.

        Examples of dependency names:
            taxonomy_term:tags:97370a5d-ea40-499d-a9a2-59f02d2820dc
            config:filter_format.basic_html

        Args:
            dependency_name: The dependency name

        Returns:
            The resolved live entity

        Raises:
            MissingDependencyError: The name was not prepared for this run
        """
        ...


@runtime_checkable
class EntityDependencyEnsurer(Protocol):
    """Prepares entities so that they can later be resolved."""

    def ensure_dependency(self, dependency_name: str) -> EntityHandle:
        """
        Import or load the entity for a dependency name and cache it.

        Raises:
            MissingDependencyError: Neither importable nor present in the live store
        """
        ...
