"""File helpers: content hashing, stream-wrapper URIs and whole-file copies."""

import hashlib
import shutil
from collections.abc import Mapping
from pathlib import Path

from .exceptions import FileSystemError

# Read size for hashing; blobs may be large media files
_HASH_CHUNK_SIZE = 1024 * 1024


def hash_file(path: str | Path) -> str:
    """
    Compute the SHA-1 hex digest of a file's content.

    Args:
        path: Local file path

    Returns:
        Hex digest string

    Raises:
        FileSystemError: If the file cannot be read
    """
    digest = hashlib.sha1()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(_HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise FileSystemError(f"Cannot hash {path}.", path, e) from e
    return digest.hexdigest()


def local_path(uri: str, stream_wrappers: Mapping[str, str | Path] | None = None) -> Path:
    """
    Translate a blob URI into a local filesystem path.

    URIs of the form ``scheme://target`` are resolved against the directory
    registered for ``scheme``. Anything else is treated as a plain path.

    Args:
        uri: Blob URI such as ``public://images/cat.png`` or ``/srv/files/cat.png``
        stream_wrappers: Mapping of scheme to base directory

    Returns:
        Local path for the URI

    Raises:
        FileSystemError: If the URI uses a scheme with no registered directory
    """
    scheme, separator, target = uri.partition("://")
    if not separator:
        return Path(uri)

    wrappers = stream_wrappers or {}
    if scheme not in wrappers:
        raise FileSystemError(f"No directory registered for stream wrapper '{scheme}://'", uri)
    return Path(wrappers[scheme]) / target


def copy_file(source: str | Path, destination: str | Path) -> Path:
    """
    Copy a whole file, creating the destination directory if needed.

    Args:
        source: File to copy
        destination: Target path, replaced if it exists

    Returns:
        The destination path

    Raises:
        FileSystemError: If the directory cannot be created or the copy fails
    """
    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(
            f"Cannot create the directory {destination.parent}.", destination.parent, e
        ) from e

    try:
        shutil.copyfile(source, destination)
    except OSError as e:
        raise FileSystemError(
            f"Cannot copy a blob file from {source} to {destination}.", destination, e
        ) from e

    return destination
