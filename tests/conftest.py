"""Pytest configuration and shared fixtures."""

import zlib
from pathlib import Path
from types import SimpleNamespace
from typing import Callable

import pytest

from grit.core import Repository

# Keys below were computed with the real git binary
HELLO_KEY = "ce013625030ba8dba906f756967f9e9ca394464a"
EMPTY_BLOB_KEY = "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
EMPTY_TREE_KEY = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"
SUB_TREE_KEY = "66c31ab1b81cb3c5a77682b67611d2d6984ba73d"
ROOT_TREE_KEY = "8a932bf3a437e81f97bd4814c8817db6162c5bb0"
COMMIT_KEY = "8fbd72a044719cd81dfcdfe8d8391bb35bed830d"
TAG_KEY = "65e2e1b5e82f06ae7029635c0b69043b9a9569a8"

AUTHOR = b"A U Thor <author@example.com> 1700000000 +0000"


@pytest.fixture
def samples() -> SimpleNamespace:
    """Payloads of one object of each kind and their known keys.

    The root tree holds ``hello.txt`` (the ``hello\\n`` blob), an empty
    executable ``run.sh`` and a ``sub`` directory; the commit points at the
    root tree and the tag at the commit.
    """
    root_tree = (
        b"100644 hello.txt\x00" + bytes.fromhex(HELLO_KEY)
        + b"100755 run.sh\x00" + bytes.fromhex(EMPTY_BLOB_KEY)
        + b"40000 sub\x00" + bytes.fromhex(SUB_TREE_KEY)
    )
    commit = (
        b"tree " + ROOT_TREE_KEY.encode() + b"\n"
        + b"author " + AUTHOR + b"\n"
        + b"committer " + AUTHOR + b"\n"
        + b"\n"
        + b"Initial commit\n"
    )
    tag = (
        b"object " + COMMIT_KEY.encode() + b"\n"
        + b"type commit\n"
        + b"tag v1.0\n"
        + b"tagger " + AUTHOR + b"\n"
        + b"\n"
        + b"Release 1.0\n"
    )
    return SimpleNamespace(
        hello=b"hello\n",
        hello_key=HELLO_KEY,
        empty_blob_key=EMPTY_BLOB_KEY,
        empty_tree_key=EMPTY_TREE_KEY,
        sub_tree_key=SUB_TREE_KEY,
        root_tree=root_tree,
        root_tree_key=ROOT_TREE_KEY,
        commit=commit,
        commit_key=COMMIT_KEY,
        tag=tag,
        tag_key=TAG_KEY,
    )


@pytest.fixture
def repo(tmp_path: Path) -> Repository:
    """Create a freshly initialized repository."""
    return Repository.create(tmp_path / "project")


@pytest.fixture
def write_raw_object(repo: Repository) -> Callable[..., Path]:
    """Return a helper that plants a loose-object file with arbitrary content.

    The content is zlib-compressed unless ``compress=False`` is passed.
    """

    def _write(key: str, raw: bytes, compress: bool = True) -> Path:
        path = repo.gitdir / "objects" / key[:2] / key[2:]
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(zlib.compress(raw) if compress else raw)
        return path

    return _write
