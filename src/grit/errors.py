"""Exception hierarchy for grit.

Every failure raised by the object store derives from :class:`GritError` and
carries the structured context (paths, keys, labels) that produced it, so
callers can branch on the exception type instead of its message. Filesystem
failures are not wrapped: ``OSError`` propagates unchanged.
"""

from pathlib import Path
from typing import Optional


class GritError(Exception):
    """Base class for all grit errors."""


class RepositoryNotFoundError(GritError):
    """Raised when no ancestor of a path contains a ``.git`` directory."""

    def __init__(self, start_path: Path, root: Path) -> None:
        self.start_path = start_path
        self.root = root
        super().__init__(
            f"not a git repository: {start_path} "
            f"(or any parent up to mount point {root})"
        )


class InvalidRepositoryError(GritError):
    """Raised when a ``.git`` directory exists but cannot be used."""

    def __init__(self, gitdir: Path, reason: str) -> None:
        self.gitdir = gitdir
        self.reason = reason
        super().__init__(f"Invalid git repository {gitdir}: {reason}")


class MissingConfigError(InvalidRepositoryError):
    """Raised when a repository has no configuration file."""

    def __init__(self, gitdir: Path) -> None:
        super().__init__(gitdir, "missing configuration file")


class RepositoryExistsError(GritError):
    """Raised when initializing over a non-empty ``.git`` directory."""

    def __init__(self, gitdir: Path) -> None:
        self.gitdir = gitdir
        super().__init__(f"{gitdir} is not empty")


class ExpectedDirectoryError(GritError):
    """Raised when a path that must be a directory is something else."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"{path} is not a directory")


class ExpectedFileError(GritError):
    """Raised when a path that must be a regular file is something else."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"{path} is not a regular file")


class InvalidKeyError(GritError):
    """Raised when an object key is not well-formed lowercase hex."""

    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(f"Invalid object name: {key!r}")


class ObjectNotFoundError(GritError):
    """Raised when a well-formed key has no loose object."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Object not found: {key}")


class InvalidHeaderError(GritError):
    """Raised when a loose object's header is missing or inconsistent."""

    def __init__(self, reason: str, key: Optional[str] = None) -> None:
        self.reason = reason
        self.key = key
        where = f" in object {key}" if key else ""
        super().__init__(f"Invalid object header{where}: {reason}")


class InvalidObjectTypeError(GritError):
    """Raised for a kind label outside blob, commit, tag and tree."""

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"Invalid object type: {label!r}")


class MalformedObjectError(GritError):
    """Raised when a tree, commit or tag payload cannot be parsed."""

    def __init__(self, kind: str, reason: str) -> None:
        self.kind = kind
        self.reason = reason
        super().__init__(f"Malformed {kind} object: {reason}")


class CorruptObjectError(GritError):
    """Raised when a loose object file cannot be decompressed."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Corrupt object {key}: {reason}")
