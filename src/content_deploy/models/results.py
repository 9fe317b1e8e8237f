"""Result types for export, import and diff runs."""

import difflib
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from ..constants import ENTITY_ADDED_PLACEHOLDER, ENTITY_DELETED_PLACEHOLDER


@dataclass
class ImportResult:
    """
    Overall result of an import run.

    Attributes:
        run_id: Unique run identifier, also bound to the run's log context
        created: Number of records created
        updated: Number of records updated
        imported: Dependency names imported, in import order
        skipped: Requested names that had no dump in the source directory
        started_at: Start timestamp
        completed_at: Completion timestamp
    """

    run_id: str
    created: int = 0
    updated: int = 0
    imported: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def total(self) -> int:
        """Number of records written."""
        return self.created + self.updated

    @property
    def duration_seconds(self) -> float:
        """
        Wall time of the run.

        Returns:
            float: Seconds between start and completion, 0.0 while unfinished.
        """
        if self.started_at is None or self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def as_dict(self) -> dict[str, int]:
        """Get the counters keyed ``created`` and ``updated``."""
        return {"created": self.created, "updated": self.updated}

    def get_summary(self) -> str:
        """
        Get a human-readable summary.

        Returns:
            str: Summary string with run ID and counts.
        """
        return (
            f"Run {self.run_id}: {self.created} created, {self.updated} updated, "
            f"{len(self.skipped)} skipped ({self.duration_seconds:.2f}s)"
        )


@dataclass
class ExportResult:
    """
    Overall result of an export run.

    Attributes:
        run_id: Unique run identifier
        destination: Content directory written to
        exported: Dependency names exported, in export order
        blobs: Number of blob files copied
    """

    run_id: str
    destination: Path
    exported: list[str] = field(default_factory=list)
    blobs: int = 0

    def get_summary(self) -> str:
        """Get a human-readable summary."""
        return (
            f"Run {self.run_id}: {len(self.exported)} dumps, {self.blobs} blobs "
            f"written to {self.destination}"
        )


@dataclass
class ContentDiff:
    """
    Text difference of one dependency name between the active and staged side.

    Attributes:
        dependency_name: The compared unit
        active_lines: Lines of the live store's dump, or a placeholder
        staged_lines: Lines of the staged dump, or a placeholder
    """

    dependency_name: str
    active_lines: list[str]
    staged_lines: list[str]

    @property
    def has_changes(self) -> bool:
        """Whether the two sides differ."""
        return self.active_lines != self.staged_lines

    @property
    def status(self) -> str:
        """``added`` (staged only), ``deleted`` (live only) or ``changed``."""
        if self.active_lines == [ENTITY_ADDED_PLACEHOLDER]:
            return "added"
        if self.staged_lines == [ENTITY_DELETED_PLACEHOLDER]:
            return "deleted"
        return "changed"

    def unified(self, context: int = 3) -> list[str]:
        """
        Render the difference as unified diff lines.

        Args:
            context: Number of unchanged lines around each change

        Returns:
            Diff lines without trailing newlines, empty if nothing changed
        """
        return list(
            difflib.unified_diff(
                self.active_lines,
                self.staged_lines,
                fromfile=f"active/{self.dependency_name}",
                tofile=f"staged/{self.dependency_name}",
                n=context,
                lineterm="",
            )
        )
