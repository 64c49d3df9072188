"""Storage layer for grit.

This module provides the loose-object store and the repository
configuration file.
"""

from grit.storage.config import RepositoryConfig
from grit.storage.object_store import LooseObjectStore

__all__ = [
    "LooseObjectStore",
    "RepositoryConfig",
]
