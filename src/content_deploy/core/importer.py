"""Importer - replay staged dumps into the live store.

An import run:
1. Loads the requested dumps (the working set); names without a dump are skipped.
2. Ensures every dependency of the working set: dumps in the working set are
   imported after their own dependencies, anything else must already exist
   in the live store.
3. Imports the remaining dumps of the working set.

Records are created when no live record has the dump's UUID, otherwise their
fields are overwritten. Each record is counted once per run.
"""

import uuid
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from pathlib import Path

import structlog

from ..config import DeployConfig
from ..dependency.resolver import EntityDependencyEnsurer, EntityDependencyResolver
from ..dump.models import Blob, Dump
from ..dump.restorer import DumpRestorer
from ..dump.storage import DumpStorage
from ..models.results import ImportResult
from ..observability.logger import LogContext
from ..store.protocol import EntityHandle, EntityStore
from ..store.repository import EntityRepository
from ..utils.exceptions import CyclicDependencyError, MissingDependencyError
from ..utils.files import copy_file, local_path

logger = structlog.get_logger(__name__)


class Importer(EntityDependencyEnsurer, EntityDependencyResolver):
    """
    Import dumps of one content directory into the live store.

    The importer owns the entity cache of its run: dependency name to the
    live entity loaded or written during the run. It fills that cache through
    ``ensure_dependency``; the restorer is handed the importer as a plain
    ``EntityDependencyResolver`` and only reads the cache.
    """

    RESULT_CREATED = "created"
    RESULT_UPDATED = "updated"

    def __init__(
        self,
        source: str,
        dependency_names: Iterable[str],
        store: EntityStore,
        storage: DumpStorage,
        stream_wrappers: Mapping[str, str | Path] | None = None,
    ) -> None:
        """
        Initialize importer.

        Args:
            source: Name of the source content directory, for logging
            dependency_names: Names of the dumps to import
            store: Live entity store
            storage: Storage of the source content directory
            stream_wrappers: Scheme to directory mapping for blob destinations
        """
        self.source = source
        self.dependency_names = list(dependency_names)
        self.store = store
        self.storage = storage
        self.stream_wrappers = dict(stream_wrappers or {})

        self.repository = EntityRepository(store)
        self.restorer = DumpRestorer(store, self)

        self._dumps: dict[str, Dump] = {}
        self._entity_cache: dict[str, EntityHandle] = {}
        self._result = ImportResult(run_id="")

    @classmethod
    def create(
        cls,
        source: str,
        dependency_names: Iterable[str],
        store: EntityStore,
        config: DeployConfig,
    ) -> "Importer":
        """
        Instantiate an importer for a named content directory.

        Raises:
            ConfigurationError: The source directory is not configured
        """
        storage = DumpStorage.create(source, config)
        return cls(source, dependency_names, store, storage, config.stream_wrappers)

    def import_dumps(self) -> ImportResult:
        """
        Perform the import.

        Returns:
            ImportResult with created/updated counts and imported names

        Raises:
            MissingDependencyError: A dependency is neither staged nor live
            CyclicDependencyError: Staged dumps depend on each other in a cycle
            SchemaMismatchError: A dump no longer matches the live schema
            FileSystemError: A blob file cannot be copied
        """
        run_id = str(uuid.uuid4())[:8]
        self._result = ImportResult(run_id=run_id, started_at=datetime.now())
        self._entity_cache = {}

        with LogContext(run_id=run_id, source=self.source):
            logger.info("Starting import", requested=len(self.dependency_names))

            self._dumps = self.storage.load_multiple(self.dependency_names)
            for dependency_name in self.dependency_names:
                if dependency_name not in self._dumps:
                    logger.warning("Dump not found, skipping", dependency_name=dependency_name)
                    self._result.skipped.append(dependency_name)

            self._ensure_all_dependencies()

            for dependency_name, dump in self._dumps.items():
                if dependency_name not in self._entity_cache:
                    self._import_single(dump)

            self._result.completed_at = datetime.now()
            logger.info(
                "Import complete",
                created=self._result.created,
                updated=self._result.updated,
                skipped=len(self._result.skipped),
                duration_seconds=round(self._result.duration_seconds, 3),
            )

        return self._result

    def _ensure_all_dependencies(self) -> None:
        for dump in self._dumps.values():
            for key in dump.dependency_keys():
                for dependency_name in dump.dependencies_for(key):
                    self.ensure_dependency(dependency_name)

    def ensure_dependency(self, dependency_name: str) -> EntityHandle:
        """
        Make a dependency available in the entity cache.

        Staged dumps of the working set are imported depth-first, each after
        the dumps it depends on. Names outside the working set are loaded
        from the live store.

        Args:
            dependency_name: The dependency name

        Returns:
            The live entity of the dependency

        Raises:
            MissingDependencyError: The name is neither staged nor live
            CyclicDependencyError: The name depends on itself through staged dumps
        """
        if dependency_name in self._entity_cache:
            logger.debug("Entity cache hit", dependency_name=dependency_name)
            return self._entity_cache[dependency_name]

        # Dumps being imported, each with its not yet visited dependencies
        stack: list[tuple[str, Iterator[str]]] = []
        self._enter(dependency_name, stack)

        while stack:
            name, pending = stack[-1]
            next_name = next(pending, None)

            if next_name is None:
                stack.pop()
                self._import_single(self._dumps[name])
            elif next_name not in self._entity_cache:
                self._enter(next_name, stack)

        return self._entity_cache[dependency_name]

    def _enter(self, dependency_name: str, stack: list[tuple[str, Iterator[str]]]) -> None:
        """
        Start ensuring one name: push staged dumps, load everything else.

        Raises:
            MissingDependencyError: The name is neither staged nor live
            CyclicDependencyError: The name is already on the stack
        """
        in_progress = [name for name, _ in stack]
        if dependency_name in in_progress:
            cycle = in_progress[in_progress.index(dependency_name):] + [dependency_name]
            raise CyclicDependencyError(
                f"Cyclic dependency between dumps: {' -> '.join(cycle)}", cycle
            )

        dump = self._dumps.get(dependency_name)
        if dump is not None:
            stack.append((dependency_name, iter(dump.all_dependency_names())))
            return

        entity = self.repository.load_entity_by_dependency_name(dependency_name)
        if entity is None:
            raise MissingDependencyError(dependency_name)

        logger.debug("Loaded live dependency", dependency_name=dependency_name)
        self._entity_cache[dependency_name] = entity

    def resolve_entity_dependency(self, dependency_name: str) -> EntityHandle:
        """
        Get the live entity of an already ensured dependency.

        Raises:
            MissingDependencyError: The name is not in the entity cache
        """
        try:
            return self._entity_cache[dependency_name]
        except KeyError:
            raise MissingDependencyError(dependency_name) from None

    def _import_single(self, dump: Dump) -> EntityHandle:
        """
        Create or update the live record of a dump and cache it.

        Args:
            dump: The dump

        Returns:
            The saved entity
        """
        if dump.blob is not None:
            self._copy_blob_file(dump.dependency_name, dump.blob)

        fields = self.restorer.get_importable_fields(dump)
        entity = self.repository.load_entity_by_dump(dump)

        if entity is not None:
            outcome = self.RESULT_UPDATED
            for field_name, value in fields.items():
                entity.set(field_name, value)
        else:
            outcome = self.RESULT_CREATED
            entity = self.store.create(dump.entity_type_id, fields)

        self.store.save(entity)
        self._set_import_result(dump, outcome, entity)

        logger.info("Imported dump", dependency_name=dump.dependency_name, result=outcome)
        return entity

    def _set_import_result(self, dump: Dump, outcome: str, entity: EntityHandle) -> None:
        if outcome == self.RESULT_CREATED:
            self._result.created += 1
        else:
            self._result.updated += 1
        self._result.imported.append(dump.dependency_name)
        self._entity_cache[dump.dependency_name] = entity

    def _copy_blob_file(self, dependency_name: str, blob: Blob) -> None:
        """
        Copy a staged blob file to its live location.

        A missing blob file is logged and the import continues.

        Raises:
            FileSystemError: The copy itself fails
        """
        blob_path = self.storage.get_blob_path(dependency_name, blob)

        if not blob_path.is_file():
            logger.warning(
                "Blob file does not exist", dependency_name=dependency_name, path=str(blob_path)
            )
            return

        destination = local_path(blob.uri, self.stream_wrappers)
        copy_file(blob_path, destination)
        logger.debug("Copied blob file", dependency_name=dependency_name, path=str(destination))
