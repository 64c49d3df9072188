"""Key-value list with message parser, shared by commits and tags.

Commit and tag payloads are a list of header fields followed by a blank line
and a free-form message::

    tree 8a932bf3a437e81f97bd4814c8817db6162c5bb0
    parent 0d1d7fc32e5a947fbd92ee598033d85bfc445a50
    author A U Thor <author@example.com> 1700000000 +0000
    committer A U Thor <author@example.com> 1700000000 +0000

    Commit message

Field values spanning several lines are written with every continuation line
prefixed by a single space. Field order is preserved, and repeated fields
(``parent``) keep their relative order.
"""

from dataclasses import dataclass
from typing import ClassVar, List, Optional, Sequence, Tuple, Type, Union

from grit.errors import MalformedObjectError
from grit.hashing import is_valid_key
from grit.parsers.base_parser import PayloadParser

Field = Tuple[str, bytes]


def _normalize_fields(kind: str, fields: Sequence[Field]) -> Tuple[Field, ...]:
    normalized = []
    for key, value in fields:
        if (
            not key
            or not key.isascii()
            or " " in key
            or "\n" in key
        ):
            raise MalformedObjectError(kind, f"invalid field name {key!r}")
        if isinstance(value, str):
            value = value.encode("utf-8")
        normalized.append((key, bytes(value)))
    return tuple(normalized)


@dataclass(frozen=True)
class _KeyValueObject:
    """Ordered header fields plus a message."""

    fields: Tuple[Field, ...] = ()
    message: bytes = b""

    _kind: ClassVar[str] = ""
    _required: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _normalize_fields(self._kind, self.fields))
        if isinstance(self.message, str):
            object.__setattr__(self, "message", self.message.encode("utf-8"))
        for name in self._required:
            if self.get(name) is None:
                raise MalformedObjectError(self._kind, f"missing {name!r} field")

    def get(self, key: str) -> Optional[bytes]:
        """Return the first value of field ``key``, or None."""
        for name, value in self.fields:
            if name == key:
                return value
        return None

    def get_all(self, key: str) -> List[bytes]:
        """Return every value of field ``key`` in order."""
        return [value for name, value in self.fields if name == key]

    def _text(self, key: str) -> Optional[str]:
        value = self.get(key)
        return None if value is None else value.decode("utf-8", "replace")


@dataclass(frozen=True)
class Commit(_KeyValueObject):
    """A commit: a tree snapshot, its parents, authorship and a message."""

    _kind = "commit"
    _required = ("tree",)

    def __post_init__(self) -> None:
        super().__post_init__()
        keys = [("tree", self.get("tree"))] + [("parent", p) for p in self.get_all("parent")]
        for name, value in keys:
            if not is_valid_key(value.decode("ascii", "replace")):
                raise MalformedObjectError("commit", f"invalid {name} key {value!r}")

    @property
    def tree(self) -> str:
        return self.get("tree").decode("ascii")

    @property
    def parents(self) -> List[str]:
        return [value.decode("ascii") for value in self.get_all("parent")]

    @property
    def author(self) -> Optional[str]:
        return self._text("author")

    @property
    def committer(self) -> Optional[str]:
        return self._text("committer")


@dataclass(frozen=True)
class Tag(_KeyValueObject):
    """An annotated tag pointing at another object."""

    _kind = "tag"
    _required = ("object", "type", "tag")

    @property
    def object(self) -> str:
        return self.get("object").decode("ascii")

    @property
    def object_type(self) -> str:
        return self.get("type").decode("ascii")

    @property
    def name(self) -> str:
        return self._text("tag")

    @property
    def tagger(self) -> Optional[str]:
        return self._text("tagger")


class KvlmParser(PayloadParser):
    """Parser for commit and tag payloads."""

    def __init__(self, model: Type[_KeyValueObject]) -> None:
        self.model = model
        self.kind = model._kind

    def parse(self, data: bytes) -> Union[Commit, Tag]:
        fields = []
        pos = 0
        end_of_data = len(data)

        while True:
            if pos >= end_of_data:
                raise self.error("missing blank line before message")

            # A blank line ends the fields; the rest is the message verbatim
            if data[pos:pos + 1] == b"\n":
                message = data[pos + 1:]
                break

            end = data.find(b"\n", pos)
            if end < 0:
                raise self.error(f"unterminated field at offset {pos}")
            while data[end + 1:end + 2] == b" ":
                end = data.find(b"\n", end + 1)
                if end < 0:
                    raise self.error(f"unterminated field at offset {pos}")

            line = data[pos:end]
            space = line.find(b" ")
            if space <= 0:
                raise self.error(f"field at offset {pos} has no name")
            try:
                key = line[:space].decode("ascii")
            except UnicodeDecodeError as e:
                raise self.error(f"field at offset {pos} has a non-ASCII name") from e

            fields.append((key, line[space + 1:].replace(b"\n ", b"\n")))
            pos = end + 1

        return self.model(tuple(fields), message)

    def serialize(self, value: _KeyValueObject) -> bytes:
        parts = []
        for key, field_value in value.fields:
            parts.append(key.encode("ascii"))
            parts.append(b" ")
            parts.append(field_value.replace(b"\n", b"\n "))
            parts.append(b"\n")
        parts.append(b"\n")
        parts.append(value.message)
        return b"".join(parts)
