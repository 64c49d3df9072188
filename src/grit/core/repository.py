"""Repository discovery, initialization and object access.

A repository is a worktree directory with a ``.git`` control directory
inside it. Callers obtain one with :meth:`Repository.create` or
:meth:`Repository.find` and then read and write objects by key; object file
paths are never handed out.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from grit.constants import (
    BRANCHES_DIR,
    CONFIG_FILE,
    DEFAULT_BRANCH,
    DEFAULT_DESCRIPTION,
    DESCRIPTION_FILE,
    GIT_DIR,
    HEAD_FILE,
    HEADS_DIR,
    OBJECTS_DIR,
    REFS_DIR,
    REPOSITORY_FORMAT_VERSION,
    TAGS_DIR,
)
from grit.core.objects import GitObject, ObjectType
from grit.errors import (
    ExpectedDirectoryError,
    ExpectedFileError,
    InvalidHeaderError,
    InvalidRepositoryError,
    RepositoryExistsError,
    RepositoryNotFoundError,
)
from grit.hashing import compute_key, validate_key
from grit.storage import LooseObjectStore, RepositoryConfig

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_SKELETON_DIRS = (
    (BRANCHES_DIR,),
    (OBJECTS_DIR,),
    (REFS_DIR, HEADS_DIR),
    (REFS_DIR, TAGS_DIR),
)


class Repository:
    """A repository rooted at a worktree directory.

    Writes during normal operation only ever add files under
    ``.git/objects``. Objects are immutable and content-addressed, so
    concurrent writers need no locking: two processes storing the same key
    produce identical files. Anything mutable stored here later (refs) would
    need real mutual exclusion.

    Attributes:
        worktree: Absolute path to the project root
        gitdir: Path to the ``.git`` control directory
        config: Configuration loaded from ``.git/config``

    Example:
        >>> repo = Repository.create("/tmp/proj")
        >>> key = repo.write(GitObject.create(ObjectType.BLOB, b"hello\\n"))
        >>> repo.read(key).serialize()
        b'hello\\n'
    """

    def __init__(self, worktree: Path, config: RepositoryConfig) -> None:
        self.worktree = Path(worktree)
        self.gitdir = self.worktree / GIT_DIR
        self.config = config
        self._objects = LooseObjectStore(self.gitdir / OBJECTS_DIR)

    def __repr__(self) -> str:
        return f"Repository(worktree={str(self.worktree)!r})"

    @classmethod
    def open(cls, worktree: PathLike) -> "Repository":
        """Open the repository rooted exactly at ``worktree``.

        Raises:
            InvalidRepositoryError: If ``.git`` is not a directory, its config
                is missing or unreadable, or the format version is unsupported
        """
        worktree = Path(worktree).resolve()
        gitdir = worktree / GIT_DIR

        if not gitdir.is_dir():
            raise InvalidRepositoryError(gitdir, "not a git directory")

        config = RepositoryConfig.load(gitdir / CONFIG_FILE)
        version = config.format_version
        if version != REPOSITORY_FORMAT_VERSION:
            raw = config.get("core", "repositoryformatversion")
            raise InvalidRepositoryError(
                gitdir, f"unsupported repositoryformatversion {raw!r}"
            )

        return cls(worktree, config)

    @classmethod
    def create(cls, path: PathLike) -> "Repository":
        """Initialize a new repository at ``path``.

        Missing directories are created. An existing ``.git`` is only
        accepted if it is an empty directory.

        Args:
            path: Worktree directory for the new repository

        Returns:
            The new repository, with its config loaded from the file just written

        Raises:
            ExpectedDirectoryError: If ``path``, ``.git`` or a skeleton
                directory exists but is not a directory
            RepositoryExistsError: If ``.git`` is not empty
        """
        worktree = Path(path)

        if worktree.exists():
            if not worktree.is_dir():
                raise ExpectedDirectoryError(worktree)
        else:
            worktree.mkdir(parents=True)

        gitdir = worktree / GIT_DIR
        if gitdir.exists():
            if not gitdir.is_dir():
                raise ExpectedDirectoryError(gitdir)
            if any(gitdir.iterdir()):
                raise RepositoryExistsError(gitdir)

        for parts in _SKELETON_DIRS:
            directory = gitdir.joinpath(*parts)
            if directory.exists() and not directory.is_dir():
                raise ExpectedDirectoryError(directory)
            directory.mkdir(parents=True, exist_ok=True)

        RepositoryConfig.default().write(gitdir / CONFIG_FILE)
        _write_text(gitdir / DESCRIPTION_FILE, f"{DEFAULT_DESCRIPTION}\n")
        _write_text(gitdir / HEAD_FILE, f"ref: {REFS_DIR}/{HEADS_DIR}/{DEFAULT_BRANCH}\n")

        logger.debug("Initialized empty repository in %s", gitdir)
        return cls.open(worktree)

    @classmethod
    def find(
        cls,
        start_path: PathLike = ".",
        required: bool = True,
    ) -> Optional["Repository"]:
        """Find the nearest repository enclosing ``start_path``.

        ``start_path`` and then each of its ancestors are checked, deepest
        first. The first one containing a ``.git`` directory is opened; if
        that repository is invalid the error is raised rather than searching
        further up.

        Args:
            start_path: Directory (or file) to start searching from
            required: Raise if no repository is found (otherwise return None)

        Returns:
            The nearest repository, or None if not found and not required

        Raises:
            OSError: If ``start_path`` cannot be resolved
            RepositoryNotFoundError: If no repository is found and ``required``
            InvalidRepositoryError: If the nearest ``.git`` is invalid
        """
        path = Path(start_path).resolve(strict=True)

        for candidate in (path, *path.parents):
            if (candidate / GIT_DIR).is_dir():
                logger.debug("Found git directory in %s", candidate)
                return cls.open(candidate)

        if required:
            raise RepositoryNotFoundError(path, Path(path.anchor))
        return None

    def read(self, key: str) -> GitObject:
        """Read the object stored under ``key``.

        The payload is returned exactly as stored. Structured payloads are
        parsed to validate them but never re-encoded, so the result always
        hashes back to ``key`` for an intact store.

        Args:
            key: 40-character lowercase hex key

        Returns:
            The stored object

        Raises:
            InvalidKeyError: If ``key`` is malformed (filesystem untouched)
            ObjectNotFoundError: If no object is stored under ``key``
            CorruptObjectError: If the file cannot be decompressed
            InvalidHeaderError: If the header is missing or inconsistent
            InvalidObjectTypeError: If the header names an unknown kind
            MalformedObjectError: If a structured payload fails to parse
        """
        validate_key(key)
        raw = self._objects.read(key)
        kind, payload = _split_loose_object(key, raw)
        logger.debug("Read %s object %s (%d bytes)", kind, key, len(payload))
        return GitObject(kind, payload)

    def write(self, obj: GitObject) -> str:
        """Store ``obj`` and return its key.

        Writing an object that is already stored is a no-op.
        """
        header = obj.header()
        payload = obj.serialize()
        key = compute_key(header, payload)

        if self._objects.write(key, header + payload):
            logger.debug("Wrote %s object %s", obj.kind, key)
        return key

    def contains(self, key: str) -> bool:
        """Check whether an object is stored under ``key``."""
        return self._objects.exists(key)

    def head_ref(self) -> str:
        """Return the ref HEAD points at, e.g. ``"refs/heads/master"``.

        A detached HEAD yields the key it holds.
        """
        head_path = self.gitdir / HEAD_FILE
        if not head_path.is_file():
            raise ExpectedFileError(head_path)
        content = head_path.read_text(encoding="utf-8").strip()
        if content.startswith("ref: "):
            return content[len("ref: "):].strip()
        return content


def _write_text(path: Path, content: str) -> None:
    if path.exists() and not path.is_file():
        raise ExpectedFileError(path)
    path.write_bytes(content.encode("utf-8"))


def _split_loose_object(key: str, raw: bytes) -> Tuple[ObjectType, bytes]:
    """Split decompressed loose-object bytes into kind and payload."""
    nul = raw.find(b"\x00")
    if nul < 0:
        raise InvalidHeaderError("missing NUL terminator", key)

    header = raw[:nul]
    payload = raw[nul + 1:]

    label, separator, length = header.partition(b" ")
    if not separator:
        raise InvalidHeaderError(f"cannot split header {header!r}", key)

    kind = ObjectType.from_label(label)

    if not length.isdigit():
        raise InvalidHeaderError(f"invalid length {length!r}", key)
    declared = int(length)
    if declared != len(payload):
        raise InvalidHeaderError(
            f"size mismatch: header declares {declared} bytes, "
            f"payload has {len(payload)}",
            key,
        )

    return kind, payload
