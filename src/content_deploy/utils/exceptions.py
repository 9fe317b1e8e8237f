"""Custom exceptions for content deploy.

Exception Hierarchy:
-------------------
ContentDeployError (base)
├── MissingDependencyError     # Dependency not in the import set nor the live store
├── CyclicDependencyError      # Dumps reference each other in a loop
├── FileSystemError            # Directory creation, write or blob copy failed
├── SchemaMismatchError        # Dump names a field or type the live schema lacks
├── DumpFormatError            # Dump file is not a valid dump document
├── ConfigurationError         # Unknown destination, bad store factory
└── EntityValidationError      # Live store refused to save a record

Usage Guidelines:
----------------
1. Every fatal error propagates to the caller of export/import/diff.
   Nothing is retried automatically.

2. A missing blob file at import time is NOT an error: it is logged
   and the record is imported without it.

3. Writes committed before an error are not rolled back. Each record
   is saved independently.
"""

from pathlib import Path


class ContentDeployError(Exception):
    """Base exception for all content deploy errors."""

    pass


class MissingDependencyError(ContentDeployError):
    """Raised when a dependency name cannot be resolved."""

    def __init__(self, dependency_name: str, message: str | None = None) -> None:
        """
        Initialize MissingDependencyError.

        Args:
            dependency_name: The dependency name that could not be resolved.
            message: Optional message overriding the default one.
        """
        super().__init__(message or f"Dependency {dependency_name} is missing.")
        self.dependency_name = dependency_name


class CyclicDependencyError(ContentDeployError):
    """
    Raised when dumps in one import run reference each other in a loop.

    Example:
        node:article:A references node:article:B as a related article,
        and node:article:B references node:article:A back.

    Neither record can be created before the other, so the importer fails
    fast instead of descending forever.
    """

    def __init__(self, message: str, cycle: list[str] | None = None) -> None:
        """
        Initialize CyclicDependencyError.

        Args:
            message: Error message.
            cycle: Dependency names forming the cycle, first name repeated last.
        """
        super().__init__(message)
        self.cycle = cycle or []


class FileSystemError(ContentDeployError):
    """Raised when the dump directory or a blob file cannot be read or written."""

    def __init__(
        self,
        message: str,
        path: str | Path | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize FileSystemError.

        Args:
            message: Error message.
            path: Path that failed.
            original_error: Optional OSError that caused this error.
        """
        super().__init__(message)
        self.path = path
        self.original_error = original_error


class SchemaMismatchError(ContentDeployError):
    """Raised when a dump references a type or field the live schema does not define."""

    def __init__(
        self,
        message: str,
        entity_type_id: str | None = None,
        field_name: str | None = None,
    ) -> None:
        """
        Initialize SchemaMismatchError.

        Args:
            message: Error message.
            entity_type_id: Entity type that was looked up.
            field_name: Field or field type that was looked up.
        """
        super().__init__(message)
        self.entity_type_id = entity_type_id
        self.field_name = field_name


class DumpFormatError(ContentDeployError):
    """Raised when a dump document cannot be parsed."""

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        """
        Initialize DumpFormatError.

        Args:
            message: Error message.
            path: Optional dump file path.
        """
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        """
        Return string representation with path if available.

        Returns:
            str: Error message prefixed with the dump path if set.
        """
        if self.path:
            return f"{self.path}: {self.args[0]}"
        return str(self.args[0]) if self.args else "Invalid dump"


class ConfigurationError(ContentDeployError):
    """Raised when the configuration cannot satisfy a request."""

    pass


class EntityValidationError(ContentDeployError):
    """Raised by a live store when a record fails validation on save."""

    def __init__(self, message: str, dependency_name: str | None = None) -> None:
        """
        Initialize EntityValidationError.

        Args:
            message: Error message.
            dependency_name: Dependency name of the refused record, if known.
        """
        super().__init__(message)
        self.dependency_name = dependency_name
