"""Tree payload parser.

A tree payload is a sequence of entries, each encoded as::

    <octal mode> <name>\\0<20-byte raw digest>

Modes carry no leading zeros (``40000`` for subtrees) and entries are sorted
by name, with subtree names compared as if they ended in ``/``. This is the
same layout Git uses, so trees written here hash identically in Git.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple

from grit.constants import DIGEST_SIZE
from grit.errors import MalformedObjectError
from grit.hashing import digest_to_key, is_valid_key, key_to_digest
from grit.parsers.base_parser import PayloadParser

TREE_MODE = "40000"
_OCTAL_DIGITS = frozenset("01234567")


def _encode_name(name: str) -> bytes:
    return name.encode("utf-8", "surrogateescape")


@dataclass(frozen=True)
class TreeEntry:
    """A single entry of a tree.

    Attributes:
        mode: Octal file mode, e.g. "100644", "100755", "120000", "40000"
        name: Entry name (no path separators)
        key: Key of the referenced blob, tree or commit
    """

    mode: str
    name: str
    key: str

    def __post_init__(self) -> None:
        mode = self.mode
        if not mode or len(mode) > 6 or not set(mode) <= _OCTAL_DIGITS:
            raise MalformedObjectError("tree", f"invalid mode {mode!r}")
        # "040000" and "40000" name the same mode
        canonical_mode = mode.lstrip("0")
        if not canonical_mode:
            raise MalformedObjectError("tree", f"invalid mode {mode!r}")
        object.__setattr__(self, "mode", canonical_mode)

        if not self.name or "/" in self.name or "\x00" in self.name:
            raise MalformedObjectError("tree", f"invalid entry name {self.name!r}")
        if not is_valid_key(self.key):
            raise MalformedObjectError(
                "tree", f"invalid key {self.key!r} for entry {self.name!r}"
            )

    @property
    def is_tree(self) -> bool:
        """Whether this entry refers to a subtree."""
        return self.mode == TREE_MODE

    def sort_key(self) -> bytes:
        name = _encode_name(self.name)
        return name + b"/" if self.is_tree else name


@dataclass(frozen=True)
class Tree:
    """An ordered, duplicate-free collection of tree entries.

    Entries are stored in canonical order regardless of the order given.
    """

    entries: Tuple[TreeEntry, ...] = ()

    def __post_init__(self) -> None:
        entries = tuple(sorted(self.entries, key=TreeEntry.sort_key))
        seen = set()
        for entry in entries:
            if entry.name in seen:
                raise MalformedObjectError(
                    "tree", f"duplicate entry name {entry.name!r}"
                )
            seen.add(entry.name)
        object.__setattr__(self, "entries", entries)

    @classmethod
    def of(cls, entries: Iterable[TreeEntry]) -> "Tree":
        return cls(tuple(entries))

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, name: str) -> TreeEntry:
        """Look up an entry by name.

        Raises:
            KeyError: If the tree has no entry with that name
        """
        for entry in self.entries:
            if entry.name == name:
                return entry
        raise KeyError(name)


class TreeParser(PayloadParser):
    """Parser for tree payloads."""

    kind = "tree"

    def parse(self, data: bytes) -> Tree:
        entries = []
        pos = 0
        end_of_data = len(data)

        while pos < end_of_data:
            space = data.find(b" ", pos)
            if space < 0:
                raise self.error(f"entry at offset {pos} has no mode separator")

            nul = data.find(b"\x00", space)
            if nul < 0:
                raise self.error(f"entry at offset {pos} has no name terminator")

            end = nul + 1 + DIGEST_SIZE
            if end > end_of_data:
                raise self.error(f"entry at offset {pos} has a truncated digest")

            try:
                mode = data[pos:space].decode("ascii")
            except UnicodeDecodeError as e:
                raise self.error(f"entry at offset {pos} has a non-ASCII mode") from e
            name = data[space + 1:nul].decode("utf-8", "surrogateescape")

            entries.append(TreeEntry(mode, name, digest_to_key(data[nul + 1:end])))
            pos = end

        return Tree(tuple(entries))

    def serialize(self, value: Tree) -> bytes:
        parts = []
        for entry in value.entries:
            parts.append(entry.mode.encode("ascii"))
            parts.append(b" ")
            parts.append(_encode_name(entry.name))
            parts.append(b"\x00")
            parts.append(key_to_digest(entry.key))
        return b"".join(parts)
