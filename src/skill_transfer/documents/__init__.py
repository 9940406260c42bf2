"""Tree documents and the in-memory document store."""

from .store import DocumentPaths, DocumentStore, load_document
from .tree import MappingNode, Node, ScalarNode, SequenceNode, dump_tree, parse_tree

__all__ = [
    "DocumentPaths",
    "DocumentStore",
    "load_document",
    "MappingNode",
    "Node",
    "ScalarNode",
    "SequenceNode",
    "dump_tree",
    "parse_tree",
]
