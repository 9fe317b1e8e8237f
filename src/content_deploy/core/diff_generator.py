"""Diff Generator - compare live records with the dumps of a content directory."""

from collections.abc import Mapping
from pathlib import Path

import structlog

from ..constants import ENTITY_ADDED_PLACEHOLDER, ENTITY_DELETED_PLACEHOLDER
from ..dump.dumper import Dumper
from ..dump.models import Dump
from ..dump.storage import DumpStorage
from ..models.results import ContentDiff
from ..store.protocol import EntityStore
from ..store.repository import EntityRepository

logger = structlog.get_logger(__name__)


class DiffGenerator:
    """
    Compute text differences between the active and the staged side.

    The active side is a fresh dump of the live record; the staged side is
    the dump file. Both are compared as their canonical YAML text.
    """

    def __init__(
        self,
        store: EntityStore,
        storage: DumpStorage,
        stream_wrappers: Mapping[str, str | Path] | None = None,
    ) -> None:
        """
        Initialize diff generator.

        Args:
            store: Live entity store
            storage: Storage of the staged content directory
            stream_wrappers: Scheme to directory mapping used to hash live blobs
        """
        self.storage = storage
        self.repository = EntityRepository(store)
        if stream_wrappers is None:
            stream_wrappers = storage.stream_wrappers
        self.dumper = Dumper(store, stream_wrappers)

    def diff(self) -> dict[str, ContentDiff]:
        """
        Diff every dump of the content directory against the live store.

        Returns:
            Dependency name to ContentDiff, sorted by name, only for names
            whose two sides differ
        """
        diffs: dict[str, ContentDiff] = {}

        for dependency_name in sorted(self.storage.list_all()):
            content_diff = self.diff_single(dependency_name)
            if content_diff is not None:
                diffs[dependency_name] = content_diff

        logger.info("Computed content diff", changed=len(diffs))
        return diffs

    def diff_single(self, dependency_name: str) -> ContentDiff | None:
        """
        Diff one dependency name.

        Args:
            dependency_name: The dependency name

        Returns:
            ContentDiff, or None if both sides are equal or both are absent
        """
        active_entity = self.repository.load_entity_by_dependency_name(dependency_name)
        active_dump = self.dumper.dump(active_entity) if active_entity is not None else None
        staged_dump = self.storage.load(dependency_name)

        return self.diff_between_dumps(active_dump, staged_dump, dependency_name)

    @staticmethod
    def diff_between_dumps(
        active: Dump | None,
        staged: Dump | None,
        dependency_name: str | None = None,
    ) -> ContentDiff | None:
        """
        Diff two dumps by their YAML text.

        A missing active side reads ``Entity added``, a missing staged side
        reads ``Entity deleted``.

        Args:
            active: Dump of the live record, or None
            staged: Staged dump, or None
            dependency_name: Name to report, taken from the dumps when omitted

        Returns:
            ContentDiff, or None if the texts are identical or both dumps are None
        """
        if active is None and staged is None:
            return None

        content_active = active.to_yaml() if active is not None else ENTITY_ADDED_PLACEHOLDER
        content_staged = staged.to_yaml() if staged is not None else ENTITY_DELETED_PLACEHOLDER

        if dependency_name is None:
            dependency_name = (active if active is not None else staged).dependency_name

        content_diff = ContentDiff(
            dependency_name=dependency_name,
            active_lines=content_active.split("\n"),
            staged_lines=content_staged.split("\n"),
        )
        return content_diff if content_diff.has_changes else None
