"""Payload parsers for structured object kinds.

This module provides the tree parser and the key-value-list parser shared by
commits and tags, along with the structured values they produce.
"""

from grit.parsers.base_parser import PayloadParser
from grit.parsers.kvlm_parser import Commit, KvlmParser, Tag
from grit.parsers.tree_parser import Tree, TreeEntry, TreeParser

__all__ = [
    "PayloadParser",
    "Commit",
    "KvlmParser",
    "Tag",
    "Tree",
    "TreeEntry",
    "TreeParser",
]
