"""grit - a content-addressable object store compatible with Git's loose objects.

grit persists immutable blobs, trees, commits and tags keyed by the SHA-1 of
their contents inside a ``.git`` directory discovered by walking up the
filesystem tree.
"""

__version__ = "0.1.0"
__author__ = "grit Contributors"

from grit.core import GitObject, ObjectType, Repository
from grit.errors import GritError

__all__ = [
    "__version__",
    "__author__",
    "GitObject",
    "GritError",
    "ObjectType",
    "Repository",
]
