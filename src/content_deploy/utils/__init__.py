"""Utility functions and exceptions."""

from .exceptions import (
    ConfigurationError,
    ContentDeployError,
    CyclicDependencyError,
    DumpFormatError,
    EntityValidationError,
    FileSystemError,
    MissingDependencyError,
    SchemaMismatchError,
)
from .files import copy_file, hash_file, local_path

__all__ = [
    "ContentDeployError",
    "MissingDependencyError",
    "CyclicDependencyError",
    "FileSystemError",
    "SchemaMismatchError",
    "DumpFormatError",
    "ConfigurationError",
    "EntityValidationError",
    "copy_file",
    "hash_file",
    "local_path",
]
