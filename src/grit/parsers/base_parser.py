"""Base parser interface for structured object payloads.

Trees, commits and tags carry structured payloads. Each kind has a parser
that converts payload bytes into a structured value and encodes that value
back into canonical bytes.
"""

from abc import ABC, abstractmethod
from typing import Any

from grit.errors import MalformedObjectError


class PayloadParser(ABC):
    """Abstract base class for object payload parsers.

    Each parser implementation must provide:
    - parse(): Convert payload bytes to a structured value
    - serialize(): Encode a structured value as canonical payload bytes

    ``serialize`` must be deterministic and the exact inverse of ``parse``:
    ``parse(serialize(x)) == x`` for every valid value ``x``.
    """

    #: Object kind label this parser handles ("tree", "commit", "tag")
    kind: str = ""

    @abstractmethod
    def parse(self, data: bytes) -> Any:
        """Parse payload bytes into a structured value.

        Args:
            data: Raw payload bytes

        Returns:
            Structured value for the kind

        Raises:
            MalformedObjectError: If the payload is malformed
        """

    @abstractmethod
    def serialize(self, value: Any) -> bytes:
        """Encode a structured value as canonical payload bytes.

        Args:
            value: Structured value produced by :meth:`parse` or built by hand

        Returns:
            Canonical payload bytes
        """

    def canonicalize(self, data: bytes) -> bytes:
        """Parse ``data`` and re-encode it canonically."""
        return self.serialize(self.parse(data))

    def error(self, reason: str) -> MalformedObjectError:
        """Build the error raised for a malformed payload of this kind."""
        return MalformedObjectError(self.kind, reason)
