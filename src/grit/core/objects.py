"""Immutable, content-addressed objects.

A :class:`GitObject` pairs a kind tag with its canonical payload bytes. The
loose-object header and the object key are derived from those two values and
never stored, so identical kind and payload always produce the identical key.
Objects never touch the filesystem; persistence is the repository's job.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union

from grit.errors import InvalidObjectTypeError
from grit.hashing import compute_key
from grit.parsers import Commit, KvlmParser, PayloadParser, Tag, Tree, TreeParser


class ObjectType(str, Enum):
    """The closed set of object kinds."""

    BLOB = "blob"
    COMMIT = "commit"
    TAG = "tag"
    TREE = "tree"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: Union[str, bytes]) -> "ObjectType":
        """Parse a kind label such as ``"blob"`` or ``b"tree"``.

        Labels are case-sensitive, as they appear in loose-object headers.

        Raises:
            InvalidObjectTypeError: If the label names no known kind
        """
        if isinstance(label, bytes):
            try:
                label = label.decode("ascii")
            except UnicodeDecodeError:
                raise InvalidObjectTypeError(repr(label)) from None
        try:
            return cls(label)
        except ValueError:
            raise InvalidObjectTypeError(label) from None


# Blobs are opaque; every other kind has a structured payload
_PARSERS: Dict[ObjectType, Optional[PayloadParser]] = {
    ObjectType.BLOB: None,
    ObjectType.COMMIT: KvlmParser(Commit),
    ObjectType.TAG: KvlmParser(Tag),
    ObjectType.TREE: TreeParser(),
}

ObjectContent = Union[bytes, Tree, Commit, Tag]


@dataclass(frozen=True)
class GitObject:
    """An object of one of the four kinds together with its payload.

    Build new objects with :meth:`create` (or one of the ``from_*``
    constructors) so structured payloads are canonically encoded. The plain
    constructor accepts a label or an :class:`ObjectType` and validates a
    structured payload without re-encoding it, which is how stored objects
    are loaded: their bytes, and therefore their key, stay as written.

    Attributes:
        kind: Object kind
        payload: Payload bytes

    Example:
        >>> obj = GitObject.create(ObjectType.BLOB, b"hello\\n")
        >>> obj.header()
        b'blob 6\\x00'
        >>> obj.hash()
        'ce013625030ba8dba906f756967f9e9ca394464a'
    """

    kind: ObjectType
    payload: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.kind, ObjectType):
            object.__setattr__(self, "kind", ObjectType.from_label(self.kind))
        object.__setattr__(self, "payload", bytes(self.payload))

        # Validate only; the stored bytes are kept as given
        parser = _PARSERS[self.kind]
        if parser is not None:
            parser.parse(self.payload)

    @classmethod
    def create(cls, kind: Union[ObjectType, str], data: bytes) -> "GitObject":
        """Construct an object of the requested kind from raw bytes.

        Blob data is stored verbatim. Tree, commit and tag data is parsed
        and re-encoded canonically.

        Args:
            kind: Object kind, or its label in any case (e.g. from user input)
            data: Raw payload bytes

        Returns:
            The constructed object

        Raises:
            InvalidObjectTypeError: If ``kind`` is an unknown label
            MalformedObjectError: If structured data fails to parse
        """
        if not isinstance(kind, ObjectType):
            kind = ObjectType.from_label(kind.lower())
        data = bytes(data)

        parser = _PARSERS[kind]
        if parser is not None:
            data = parser.canonicalize(data)
        return cls(kind, data)

    @classmethod
    def from_tree(cls, tree: Tree) -> "GitObject":
        return cls(ObjectType.TREE, _PARSERS[ObjectType.TREE].serialize(tree))

    @classmethod
    def from_commit(cls, commit: Commit) -> "GitObject":
        return cls(ObjectType.COMMIT, _PARSERS[ObjectType.COMMIT].serialize(commit))

    @classmethod
    def from_tag(cls, tag: Tag) -> "GitObject":
        return cls(ObjectType.TAG, _PARSERS[ObjectType.TAG].serialize(tag))

    @property
    def size(self) -> int:
        """Payload length in bytes."""
        return len(self.payload)

    def serialize(self) -> bytes:
        """Return the canonical payload bytes."""
        return self.payload

    def header(self) -> bytes:
        """Return the loose-object header ``b"<kind> <size>\\0"``."""
        return f"{self.kind.value} {self.size}\x00".encode("ascii")

    def hash(self) -> str:
        """Return the object key: SHA-1 of header and payload, lowercase hex."""
        return compute_key(self.header(), self.payload)

    def content(self) -> ObjectContent:
        """Return the structured value of the payload.

        Returns:
            ``bytes`` for blobs, :class:`Tree`, :class:`Commit` or :class:`Tag`
            for the structured kinds
        """
        parser = _PARSERS[self.kind]
        if parser is None:
            return self.payload
        return parser.parse(self.payload)
