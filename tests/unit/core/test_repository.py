"""Unit tests for Repository."""

import hashlib
import os
from pathlib import Path

import pytest

from grit.core import GitObject, ObjectType, Repository
from grit.errors import (
    CorruptObjectError,
    ExpectedDirectoryError,
    InvalidHeaderError,
    InvalidKeyError,
    InvalidObjectTypeError,
    InvalidRepositoryError,
    MalformedObjectError,
    MissingConfigError,
    ObjectNotFoundError,
    RepositoryExistsError,
    RepositoryNotFoundError,
)

# Any well-formed key with no object behind it
UNUSED_KEY = "ab" + "c" * 38


def _no_git_above(path: Path) -> bool:
    return not any((p / ".git").is_dir() for p in (path, *path.parents))


class TestRepositoryCreate:
    """Test repository initialization."""

    def test_create_directory_skeleton(self, tmp_path: Path) -> None:
        """Test that create lays out the control directory."""
        repo = Repository.create(tmp_path / "project")
        gitdir = tmp_path / "project" / ".git"

        assert repo.worktree == (tmp_path / "project").resolve()
        assert repo.gitdir == gitdir.resolve()
        for sub in ("branches", "objects", "refs/heads", "refs/tags"):
            assert (gitdir / sub).is_dir()
            assert list((gitdir / sub).iterdir()) == []

    def test_create_writes_control_files(self, tmp_path: Path) -> None:
        """Test exact contents of HEAD, description and config."""
        Repository.create(tmp_path)
        gitdir = tmp_path / ".git"

        assert (gitdir / "HEAD").read_bytes() == b"ref: refs/heads/master\n"
        assert (gitdir / "description").read_bytes() == (
            b"Unnamed repository; edit this file 'description' to name the repository.\n"
        )
        assert (gitdir / "config").read_text(encoding="utf-8") == (
            "[core]\n"
            "bare = false\n"
            "repositoryformatversion = 0\n"
            "filemode = false\n"
            "\n"
        )

    def test_create_loads_config(self, tmp_path: Path) -> None:
        repo = Repository.create(tmp_path)

        assert repo.config.format_version == 0
        assert repo.config.bare is False
        assert repo.config.filemode is False

    def test_create_missing_ancestors(self, tmp_path: Path) -> None:
        """Test that missing parent directories are created."""
        target = tmp_path / "a" / "b" / "c"
        Repository.create(target)
        assert (target / ".git" / "objects").is_dir()

    def test_create_accepts_empty_git_dir(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        repo = Repository.create(tmp_path)
        assert (repo.gitdir / "HEAD").is_file()

    def test_create_keeps_existing_worktree_files(self, tmp_path: Path) -> None:
        (tmp_path / "README").write_text("hi")
        Repository.create(tmp_path)
        assert (tmp_path / "README").read_text() == "hi"

    def test_create_on_file_fails(self, tmp_path: Path) -> None:
        target = tmp_path / "file"
        target.write_text("not a directory")

        with pytest.raises(ExpectedDirectoryError) as excinfo:
            Repository.create(target)
        assert excinfo.value.path == target

    def test_create_with_git_file_fails(self, tmp_path: Path) -> None:
        (tmp_path / ".git").write_text("gitdir: elsewhere\n")
        with pytest.raises(ExpectedDirectoryError):
            Repository.create(tmp_path)

    def test_create_non_empty_git_dir_fails(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "stray").write_text("x")

        with pytest.raises(RepositoryExistsError, match="not empty"):
            Repository.create(tmp_path)

    def test_create_twice_fails(self, tmp_path: Path) -> None:
        Repository.create(tmp_path)
        with pytest.raises(RepositoryExistsError):
            Repository.create(tmp_path)

    def test_head_ref(self, repo: Repository) -> None:
        assert repo.head_ref() == "refs/heads/master"


class TestRepositoryOpen:
    """Test opening and validating an existing repository."""

    def test_open(self, repo: Repository) -> None:
        reopened = Repository.open(repo.worktree)
        assert reopened.worktree == repo.worktree

    def test_open_without_git_dir(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidRepositoryError, match="not a git directory"):
            Repository.open(tmp_path)

    def test_open_missing_config(self, repo: Repository) -> None:
        (repo.gitdir / "config").unlink()

        with pytest.raises(MissingConfigError):
            Repository.open(repo.worktree)

    def test_open_config_is_directory(self, repo: Repository) -> None:
        (repo.gitdir / "config").unlink()
        (repo.gitdir / "config").mkdir()

        with pytest.raises(InvalidRepositoryError, match="not a regular file"):
            Repository.open(repo.worktree)

    @pytest.mark.parametrize("version", ["1", "-1", "zero"])
    def test_open_unsupported_version(self, repo: Repository, version: str) -> None:
        (repo.gitdir / "config").write_text(
            f"[core]\n\trepositoryformatversion = {version}\n"
        )
        with pytest.raises(InvalidRepositoryError, match="unsupported repositoryformatversion"):
            Repository.open(repo.worktree)

    def test_open_version_missing(self, repo: Repository) -> None:
        (repo.gitdir / "config").write_text("[core]\n\tbare = false\n")
        with pytest.raises(InvalidRepositoryError):
            Repository.open(repo.worktree)


class TestRepositoryFind:
    """Test repository discovery."""

    def test_find_from_worktree(self, repo: Repository) -> None:
        assert Repository.find(repo.worktree).worktree == repo.worktree

    def test_find_from_subdirectory(self, repo: Repository) -> None:
        nested = repo.worktree / "src" / "pkg"
        nested.mkdir(parents=True)

        assert Repository.find(nested).worktree == repo.worktree

    def test_find_from_file(self, repo: Repository) -> None:
        target = repo.worktree / "notes.txt"
        target.write_text("notes")

        assert Repository.find(target).worktree == repo.worktree

    def test_find_relative_path(self, repo: Repository, monkeypatch) -> None:
        (repo.worktree / "sub").mkdir()
        monkeypatch.chdir(repo.worktree / "sub")

        assert Repository.find().worktree == repo.worktree
        assert Repository.find("..").worktree == repo.worktree

    def test_find_nearest_repository(self, tmp_path: Path) -> None:
        """Test that the deepest enclosing repository wins."""
        outer = Repository.create(tmp_path / "a")
        inner = Repository.create(tmp_path / "a" / "b")
        start = tmp_path / "a" / "b" / "c"
        start.mkdir()

        found = Repository.find(start)

        assert found.worktree == inner.worktree
        assert found.worktree != outer.worktree

    def test_find_malformed_nearest_shadows_outer(self, tmp_path: Path) -> None:
        """Test that an invalid nearer .git is an error, not skipped."""
        Repository.create(tmp_path / "a")
        (tmp_path / "a" / "b" / ".git").mkdir(parents=True)

        with pytest.raises(InvalidRepositoryError):
            Repository.find(tmp_path / "a" / "b")

    def test_find_ignores_git_file(self, tmp_path: Path) -> None:
        """Test that only .git directories mark a repository."""
        outer = Repository.create(tmp_path / "a")
        (tmp_path / "a" / "b").mkdir()
        (tmp_path / "a" / "b" / ".git").write_text("gitdir: elsewhere\n")

        assert Repository.find(tmp_path / "a" / "b").worktree == outer.worktree

    def test_find_not_found(self, tmp_path: Path) -> None:
        if not _no_git_above(tmp_path):
            pytest.skip("temporary directory is inside a git repository")

        with pytest.raises(RepositoryNotFoundError) as excinfo:
            Repository.find(tmp_path)

        assert excinfo.value.start_path == tmp_path.resolve()
        assert excinfo.value.root == Path(tmp_path.resolve().anchor)
        assert "not a git repository" in str(excinfo.value)

    def test_find_not_required(self, tmp_path: Path) -> None:
        if not _no_git_above(tmp_path):
            pytest.skip("temporary directory is inside a git repository")

        assert Repository.find(tmp_path, required=False) is None

    def test_find_missing_start_path(self, tmp_path: Path) -> None:
        """Test that an unresolvable start path is an I/O error."""
        with pytest.raises(OSError):
            Repository.find(tmp_path / "does-not-exist")


class TestRepositoryWrite:
    """Test writing objects."""

    def test_write_hello_blob(self, repo: Repository, samples) -> None:
        key = repo.write(GitObject.create(ObjectType.BLOB, samples.hello))

        assert key == "ce013625030ba8dba906f756967f9e9ca394464a"
        assert (repo.gitdir / "objects" / "ce" / "013625030ba8dba906f756967f9e9ca394464a").is_file()

    def test_write_is_idempotent(self, repo: Repository) -> None:
        obj = GitObject.create(ObjectType.BLOB, b"twice")

        key1 = repo.write(obj)
        key2 = repo.write(obj)

        assert key1 == key2
        fanout = repo.gitdir / "objects" / key1[:2]
        assert [p.name for p in fanout.iterdir()] == [key1[2:]]

    def test_write_returns_object_hash(self, repo: Repository, samples) -> None:
        obj = GitObject.create(ObjectType.TREE, samples.root_tree)
        assert repo.write(obj) == obj.hash()

    def test_fanout_layout(self, repo: Repository) -> None:
        """Test that every object lives at objects/<key[:2]>/<key[2:]>."""
        keys = [repo.write(GitObject.create("blob", bytes([i]) * i)) for i in range(20)]

        for key in keys:
            assert key[:2] + key[2:] == key
            assert (repo.gitdir / "objects" / key[:2] / key[2:]).is_file()

    def test_contains(self, repo: Repository) -> None:
        key = repo.write(GitObject.create(ObjectType.BLOB, b"present"))

        assert repo.contains(key) is True
        assert repo.contains(UNUSED_KEY) is False
        assert repo.contains("not-a-key") is False


class TestRepositoryRead:
    """Test reading objects."""

    def test_read_hello_blob(self, repo: Repository, samples) -> None:
        key = repo.write(GitObject.create(ObjectType.BLOB, samples.hello))

        obj = repo.read(key)

        assert obj.kind is ObjectType.BLOB
        assert obj.serialize() == b"hello\n"

    @pytest.mark.parametrize(
        "kind,payload_name,key_name",
        [
            (ObjectType.BLOB, "hello", "hello_key"),
            (ObjectType.TREE, "root_tree", "root_tree_key"),
            (ObjectType.COMMIT, "commit", "commit_key"),
            (ObjectType.TAG, "tag", "tag_key"),
        ],
    )
    def test_round_trip_every_kind(
        self, repo: Repository, samples, kind, payload_name, key_name
    ) -> None:
        """Test write followed by read for every kind."""
        payload = getattr(samples, payload_name)
        original = GitObject.create(kind, payload)

        key = repo.write(original)
        restored = repo.read(key)

        assert key == getattr(samples, key_name)
        assert restored == original
        assert restored.serialize() == payload
        assert restored.hash() == key

    @pytest.mark.parametrize(
        "key",
        ["not-hex!!", "ab", "ce013625030ba8dba906f756967f9e9ca394464A", "", "g" * 40],
    )
    def test_read_invalid_key(self, repo: Repository, key: str, monkeypatch) -> None:
        """Test that malformed keys fail before touching the filesystem."""

        def _fail(*args, **kwargs):
            raise AssertionError("object store was accessed")

        monkeypatch.setattr(repo._objects, "read", _fail)

        with pytest.raises(InvalidKeyError):
            repo.read(key)

    def test_read_missing_object(self, repo: Repository) -> None:
        with pytest.raises(ObjectNotFoundError) as excinfo:
            repo.read(UNUSED_KEY)
        assert excinfo.value.key == UNUSED_KEY

    def test_read_missing_null_byte(self, repo: Repository, write_raw_object) -> None:
        write_raw_object(UNUSED_KEY, b"blob 5 hello")

        with pytest.raises(InvalidHeaderError, match="NUL"):
            repo.read(UNUSED_KEY)

    def test_read_size_mismatch(self, repo: Repository, write_raw_object) -> None:
        write_raw_object(UNUSED_KEY, b"blob 10\x00hello")

        with pytest.raises(InvalidHeaderError, match="size mismatch"):
            repo.read(UNUSED_KEY)

    def test_read_truncated_payload(self, repo: Repository, write_raw_object, samples) -> None:
        """Test that a payload shorter than declared is rejected."""
        write_raw_object(UNUSED_KEY, b"blob 6\x00hello")

        with pytest.raises(InvalidHeaderError):
            repo.read(UNUSED_KEY)

    @pytest.mark.parametrize("header", [b"blob", b"blob6", b"blob x", b"blob -5", b"blob "])
    def test_read_unparsable_header(
        self, repo: Repository, write_raw_object, header: bytes
    ) -> None:
        write_raw_object(UNUSED_KEY, header + b"\x00hello")

        with pytest.raises(InvalidHeaderError):
            repo.read(UNUSED_KEY)

    def test_read_unknown_kind(self, repo: Repository, write_raw_object) -> None:
        write_raw_object(UNUSED_KEY, b"blub 5\x00hello")

        with pytest.raises(InvalidObjectTypeError, match="blub"):
            repo.read(UNUSED_KEY)

    @pytest.mark.parametrize(
        "payload_name",
        ["zero_padded_mode", "unsorted_entries"],
    )
    def test_read_non_canonical_tree_keeps_key(
        self, repo: Repository, write_raw_object, samples, payload_name: str
    ) -> None:
        """Test that a valid but non-canonical tree is returned byte for byte."""
        hello = b"100644 hello.txt\x00" + bytes.fromhex(samples.hello_key)
        sub = b"040000 sub\x00" + bytes.fromhex(samples.sub_tree_key)
        payload = {
            "zero_padded_mode": sub,
            "unsorted_entries": b"40000 sub\x00" + bytes.fromhex(samples.sub_tree_key) + hello,
        }[payload_name]
        raw = b"tree %d\x00" % len(payload) + payload
        key = hashlib.sha1(raw).hexdigest()
        write_raw_object(key, raw)

        obj = repo.read(key)

        assert obj.kind is ObjectType.TREE
        assert obj.serialize() == payload
        assert obj.hash() == key
        assert obj.content().get("sub").key == samples.sub_tree_key

    def test_read_malformed_tree(self, repo: Repository, write_raw_object) -> None:
        write_raw_object(UNUSED_KEY, b"tree 5\x00junk!")

        with pytest.raises(MalformedObjectError, match="tree"):
            repo.read(UNUSED_KEY)

    def test_read_not_compressed(self, repo: Repository, write_raw_object) -> None:
        write_raw_object(UNUSED_KEY, b"blob 5\x00hello", compress=False)

        with pytest.raises(CorruptObjectError):
            repo.read(UNUSED_KEY)

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_objects_are_read_only(self, repo: Repository) -> None:
        key = repo.write(GitObject.create(ObjectType.BLOB, b"read only"))
        path = repo.gitdir / "objects" / key[:2] / key[2:]

        assert path.stat().st_mode & 0o777 == 0o444
