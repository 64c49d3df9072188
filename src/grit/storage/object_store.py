"""Loose-object storage.

Each object is stored as its own zlib-compressed file under
``.git/objects/<key[:2]>/<key[2:]>``. This module only moves bytes between
memory and those files; building headers and parsing them back into objects
is the repository's job.
"""

import logging
import os
import tempfile
import zlib
from pathlib import Path

from grit.constants import COMPRESSION_LEVEL
from grit.errors import (
    CorruptObjectError,
    ExpectedDirectoryError,
    ExpectedFileError,
    ObjectNotFoundError,
)
from grit.hashing import is_valid_key

logger = logging.getLogger(__name__)

# Loose objects are read-only once written, as in Git
OBJECT_FILE_MODE = 0o444


class LooseObjectStore:
    """Content-addressed storage of zlib-compressed loose objects.

    Objects are written at most once: if a file already exists for a key,
    its content is identical by construction and the write is skipped. New
    files are written to a temporary file in the fan-out directory and
    renamed into place, so a reader never observes a partial object and a
    failed write leaves nothing behind.

    Storage layout:
        .git/objects/<key[:2]>/<key[2:]>

    Attributes:
        objects_dir: Path to the objects directory

    Example:
        >>> store = LooseObjectStore(Path(".git/objects"))
        >>> store.write(key, b"blob 6\\x00hello\\n")
        True
        >>> store.read(key)
        b'blob 6\\x00hello\\n'
    """

    def __init__(self, objects_dir: Path) -> None:
        self.objects_dir = Path(objects_dir)

    def write(self, key: str, data: bytes) -> bool:
        """Compress ``data`` and store it under ``key``.

        Args:
            key: Object key (validated by the caller)
            data: Uncompressed header and payload

        Returns:
            True if a new file was written, False if the object already existed

        Raises:
            ExpectedDirectoryError: If the fan-out path is not a directory
            OSError: If the write fails (permissions, disk full, etc.)
        """
        object_path = self._get_object_path(key)

        if object_path.exists():
            logger.debug("Object %s already stored, skipping write", key)
            return False

        fanout_dir = object_path.parent
        if fanout_dir.exists() and not fanout_dir.is_dir():
            raise ExpectedDirectoryError(fanout_dir)
        fanout_dir.mkdir(parents=True, exist_ok=True)

        compressed = zlib.compress(data, COMPRESSION_LEVEL)

        # Atomic write: tmp file -> rename
        tmp_fd, tmp_path = tempfile.mkstemp(dir=fanout_dir, prefix="tmp_obj_")
        try:
            with os.fdopen(tmp_fd, "wb") as f:
                f.write(compressed)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, OBJECT_FILE_MODE)

            try:
                os.replace(tmp_path, object_path)
            except OSError:
                # Another process stored the same object first
                if object_path.exists():
                    os.unlink(tmp_path)
                    return False
                raise

        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.debug("Stored object %s (%d bytes compressed)", key, len(compressed))
        return True

    def read(self, key: str) -> bytes:
        """Read and decompress the object stored under ``key``.

        Args:
            key: Object key (validated by the caller)

        Returns:
            Uncompressed header and payload

        Raises:
            ObjectNotFoundError: If no object is stored under ``key``
            ExpectedFileError: If the object path is not a regular file
            CorruptObjectError: If the file is not a valid zlib stream
        """
        object_path = self._get_object_path(key)

        if not object_path.exists():
            raise ObjectNotFoundError(key)
        if not object_path.is_file():
            raise ExpectedFileError(object_path)

        with open(object_path, "rb") as f:
            data = f.read()

        try:
            return zlib.decompress(data)
        except zlib.error as e:
            raise CorruptObjectError(key, str(e)) from e

    def exists(self, key: str) -> bool:
        """Check whether an object is stored under ``key``.

        Malformed keys are reported as absent.
        """
        if not is_valid_key(key):
            return False
        return self._get_object_path(key).is_file()

    def _get_object_path(self, key: str) -> Path:
        """Get the filesystem path for an object.

        Uses Git fan-out: objects/<key[:2]>/<key[2:]>
        """
        return self.objects_dir / key[:2] / key[2:]
