"""Exporter - write dumps of the configured live records to a content directory."""

import uuid
from collections import deque
from collections.abc import Mapping
from pathlib import Path

import structlog

from ..config import DeployConfig, ExportSettings
from ..constants import CONTENT_DEPENDENCY
from ..dependency.names import format_dependency_name
from ..dump.dumper import Dumper
from ..dump.storage import DumpStorage
from ..models.results import ExportResult
from ..observability.logger import LogContext
from ..store.protocol import EntityStore
from ..store.repository import EntityDependencyQuery

logger = structlog.get_logger(__name__)


class Exporter:
    """
    Bulk export of live records.

    Each configured export name (``node``, ``node:article`` or a full
    dependency name) is expanded to the records it covers. Content records
    referenced by an exported dump are exported too, unless the export's
    settings turn that off. Every dependency name is written once per run,
    and its dependencies are followed once as soon as any export reaching it
    includes dependencies.
    """

    def __init__(
        self,
        destination: str,
        exports: Mapping[str, ExportSettings],
        store: EntityStore,
        storage: DumpStorage,
        stream_wrappers: Mapping[str, str | Path] | None = None,
    ) -> None:
        """
        Initialize exporter.

        Args:
            destination: Name of the destination content directory, for logging
            exports: Export name to its settings
            store: Live entity store
            storage: Storage of the destination content directory
            stream_wrappers: Scheme to directory mapping for blob sources
        """
        self.destination = destination
        self.exports = dict(exports)
        self.store = store
        self.storage = storage
        self.query = EntityDependencyQuery(store)
        self.dumper = Dumper(store, stream_wrappers)

    @classmethod
    def create(cls, destination: str, store: EntityStore, config: DeployConfig) -> "Exporter":
        """
        Instantiate an exporter for a named content directory.

        Raises:
            ConfigurationError: The destination directory is not configured
        """
        storage = DumpStorage.create(destination, config)
        return cls(destination, config.exports, store, storage, config.stream_wrappers)

    def export(self) -> ExportResult:
        """
        Export every configured name and, where enabled, its content dependencies.

        Returns:
            ExportResult with the exported names

        Raises:
            SchemaMismatchError: An export name refers to an unknown entity type
            FileSystemError: A dump or blob file cannot be written
        """
        run_id = str(uuid.uuid4())[:8]
        result = ExportResult(run_id=run_id, destination=self.storage.base_path)
        exported: set[str] = set()
        # Names whose content dependencies were queued
        followed: set[str] = set()

        with LogContext(run_id=run_id, destination=self.destination):
            logger.info("Starting bulk export", exports=len(self.exports))

            for export_name, settings in self.exports.items():
                worklist: deque[str] = deque([export_name])

                while worklist:
                    dependency_name = worklist.popleft()
                    logger.debug("Exporting dependency name", dependency_name=dependency_name)

                    for entity_id, entity_type_id, _, _ in self.query.execute(dependency_name):
                        entity = self.store.load(entity_type_id, entity_id)
                        if entity is None:
                            continue

                        name = format_dependency_name(
                            entity.entity_type_id, entity.bundle, entity.uuid
                        )
                        follow = settings.include_dependencies and name not in followed
                        if name in exported and not follow:
                            continue

                        dump = self.dumper.dump(entity)
                        if name not in exported:
                            self.storage.save(dump)
                            exported.add(name)
                            result.exported.append(name)
                            if dump.blob is not None:
                                result.blobs += 1
                            logger.info("Wrote dump", dependency_name=name)

                        if follow:
                            followed.add(name)
                            worklist.extend(
                                dependency
                                for dependency in dump.dependencies_for(CONTENT_DEPENDENCY)
                                if dependency not in followed
                            )

            logger.info("Bulk export complete", exported=len(result.exported), blobs=result.blobs)

        return result
