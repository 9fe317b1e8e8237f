"""Dump Storage - file-backed store of dumps and blobs keyed by dependency name.

Layout of a content directory:

    node.article.5f0c8a52-....yml
    file.image.0b6c7a1e-....yml
    file.image.0b6c7a1e-....blob.png

At most one dump file and one blob file exist per dependency name. The
directory is not locked: two runs writing the same name race on the files.
"""

import re
from collections.abc import Iterable, Mapping
from pathlib import Path

import structlog

from ..config import DeployConfig
from ..constants import BLOB_FILE_MARKER, DUMP_FILE_SUFFIX, DUMP_FILENAME_PATTERN
from ..dependency.names import from_basename, to_basename
from ..utils.exceptions import FileSystemError
from ..utils.files import copy_file, local_path
from .builder import DumpBuilder
from .models import Blob, Dump

logger = structlog.get_logger(__name__)

_DUMP_FILENAME = re.compile(DUMP_FILENAME_PATTERN)


class DumpStorage:
    """
    Read and write dumps in one content directory.

    Save is not atomic across the dump and its blob: a failed save may leave
    one without the other, and retrying the save repairs it.
    """

    def __init__(
        self,
        base_path: str | Path,
        stream_wrappers: Mapping[str, str | Path] | None = None,
    ) -> None:
        """
        Initialize dump storage.

        Args:
            base_path: Content directory
            stream_wrappers: Scheme to directory mapping used to read blob sources
        """
        self.base_path = Path(base_path)
        self.stream_wrappers = dict(stream_wrappers or {})

    @classmethod
    def create(cls, key: str, config: DeployConfig) -> "DumpStorage":
        """
        Instantiate storage for a named destination of the configuration.

        Args:
            key: Destination name, e.g. ``sync``
            config: Deploy configuration

        Returns:
            DumpStorage instance

        Raises:
            ConfigurationError: The destination is not configured
        """
        return cls(config.get_directory(key), config.stream_wrappers)

    def list_all(self) -> set[str]:
        """
        List the dependency names of all dumps in the directory.

        Files whose names are not valid dump filenames are skipped.

        Returns:
            Set of dependency names
        """
        if not self.base_path.is_dir():
            return set()

        dependency_names = set()
        for path in self.base_path.iterdir():
            name = self.get_dependency_name_from_dump_path(path)
            if name and path.is_file():
                dependency_names.add(name)

        return dependency_names

    def load(self, dependency_name: str) -> Dump | None:
        """
        Load the dump of a dependency name.

        Returns:
            The Dump, or None if no dump file exists
        """
        return self.load_multiple([dependency_name]).get(dependency_name)

    def load_multiple(self, dependency_names: Iterable[str]) -> dict[str, Dump]:
        """
        Load the dumps of several dependency names.

        Names without a dump file are omitted from the result.

        Args:
            dependency_names: Names to load, in order

        Returns:
            Dependency name to Dump, in the order requested

        Raises:
            DumpFormatError: A dump file exists but cannot be parsed
        """
        dumps: dict[str, Dump] = {}

        for dependency_name in dependency_names:
            if dependency_name in dumps:
                continue
            dump = DumpBuilder().load_file(self.get_dump_path(dependency_name))
            if dump is not None:
                dumps[dependency_name] = dump

        return dumps

    def save(self, dump: Dump) -> Path:
        """
        Write the dump file and copy its blob, if any.

        Args:
            dump: Dump to save

        Returns:
            Path of the dump file

        Raises:
            FileSystemError: The directory, the dump file or the blob copy failed
        """
        path = self.get_dump_path(dump.dependency_name)
        self._ensure_directory(path)

        try:
            path.write_text(dump.to_yaml(), encoding="utf-8")
        except OSError as e:
            raise FileSystemError(f"Cannot create a dump file {path}.", path, e) from e

        logger.debug("Wrote dump file", dependency_name=dump.dependency_name, path=str(path))

        if dump.blob is not None:
            blob_path = self.get_blob_path(dump.dependency_name, dump.blob)
            source = local_path(dump.blob.uri, self.stream_wrappers)
            copy_file(source, blob_path)
            logger.debug("Copied blob file", source=str(source), path=str(blob_path))

        return path

    def get_dump_path(self, dependency_name: str) -> Path:
        """Get the dump file path of a dependency name."""
        return self.base_path / f"{to_basename(dependency_name)}{DUMP_FILE_SUFFIX}"

    def get_blob_path(self, dependency_name: str, blob: Blob) -> Path:
        """
        Get the blob file path of a dependency name.

        Depends only on the name and the blob extension, so saving and a later
        import compute the same path.

        Args:
            dependency_name: The dependency name
            blob: The blob

        Returns:
            Blob file path
        """
        suffix = BLOB_FILE_MARKER + (blob.extension or "")
        return self.base_path / f"{to_basename(dependency_name)}{suffix}"

    @staticmethod
    def get_dependency_name_from_dump_path(path: str | Path) -> str | None:
        """
        Extract the dependency name from a dump file path.

        Returns:
            The dependency name if the filename is a valid dump filename, else None
        """
        match = _DUMP_FILENAME.match(Path(path).name)
        if not match:
            return None
        return from_basename(match.group(1))

    def _ensure_directory(self, file_path: Path) -> None:
        """
        Ensure the parent directory of a file exists.

        Raises:
            FileSystemError: The directory cannot be created
        """
        directory = file_path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Cannot create the directory {directory}.", directory, e) from e
