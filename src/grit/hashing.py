"""Object key computation and validation.

Keys are the lowercase hexadecimal SHA-1 of an object's header followed by
its payload. Uppercase or mixed-case keys are never normalized: they are
simply not keys.
"""

import hashlib

from grit.constants import DIGEST_SIZE, HASH_ALGORITHM, HASH_LENGTH
from grit.errors import InvalidKeyError

_HEX_DIGITS = frozenset("0123456789abcdef")


def compute_key(header: bytes, payload: bytes) -> str:
    """Compute the key of an object from its header and payload.

    Args:
        header: Loose-object header (``b"<kind> <size>\\0"``)
        payload: Serialized object payload

    Returns:
        Hex string of the digest (40 characters for SHA-1)
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(header)
    hasher.update(payload)
    return hasher.hexdigest()


def is_valid_key(key: object) -> bool:
    """Check whether ``key`` is a well-formed object key."""
    return (
        isinstance(key, str)
        and len(key) == HASH_LENGTH
        and all(c in _HEX_DIGITS for c in key)
    )


def validate_key(key: object) -> None:
    """Raise :class:`InvalidKeyError` unless ``key`` is a well-formed key."""
    if not is_valid_key(key):
        raise InvalidKeyError(key)


def key_to_digest(key: str) -> bytes:
    """Convert a hex key into the raw digest bytes stored in trees."""
    validate_key(key)
    return bytes.fromhex(key)


def digest_to_key(digest: bytes) -> str:
    """Convert raw digest bytes into a hex key."""
    if len(digest) != DIGEST_SIZE:
        raise InvalidKeyError(digest.hex())
    return digest.hex()
