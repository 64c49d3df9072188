"""Core layer for grit.

This module provides the object model and the repository that persists
objects and discovers repositories on disk.
"""

from grit.core.objects import GitObject, ObjectType
from grit.core.repository import Repository

__all__ = [
    "GitObject",
    "ObjectType",
    "Repository",
]
