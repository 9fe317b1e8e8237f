"""Dependency names and resolver capabilities."""

from .names import (
    DependencyName,
    format_config_dependency_name,
    format_dependency_name,
    from_basename,
    parse_dependency_name,
    to_basename,
)
from .resolver import EntityDependencyEnsurer, EntityDependencyResolver

__all__ = [
    "DependencyName",
    "parse_dependency_name",
    "format_dependency_name",
    "format_config_dependency_name",
    "to_basename",
    "from_basename",
    "EntityDependencyResolver",
    "EntityDependencyEnsurer",
]
