# src/skill_transfer/documents/tree.py
"""Generic tree documents.

Every document the knowledge manager reads (setup, task, motion template,
phase overrides) is held as a tree of three node kinds:

- ScalarNode: a leaf (None, bool, int, float or str)
- SequenceNode: an ordered tuple of nodes
- MappingNode: ordered (key, node) entries with unique string keys

Nodes are frozen, so a loaded document can be shared between requests
without copying. Changing a document means building a new tree.
"""
from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Union

import yaml  # PyYAML

Scalar = Union[None, bool, int, float, str]


class DocumentLoader(yaml.SafeLoader):
    """SafeLoader with YAML 1.2 scalar typing.

    Exponent floats without a dot (5e-2) are floats, and date-like scalars
    (2024-01-01) stay text instead of becoming datetime objects.
    """

    yaml_implicit_resolvers = {
        first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
        for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
    }


DocumentLoader.add_implicit_resolver(
    "tag:yaml.org,2002:float",
    re.compile(
        r"""^(?:[-+]?[0-9][0-9_]*\.[0-9_]*(?:[eE][-+]?[0-9]+)?
        |[-+]?[0-9][0-9_]*[eE][-+]?[0-9]+
        |[-+]?\.[0-9][0-9_]*(?:[eE][-+]?[0-9]+)?
        |[-+]?\.(?:inf|Inf|INF)
        |\.(?:nan|NaN|NAN))$""",
        re.X,
    ),
    list("-+0123456789."),
)


@dataclass(frozen=True, slots=True)
class ScalarNode:
    value: Scalar = None


@dataclass(frozen=True, slots=True)
class SequenceNode:
    items: tuple["Node", ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.items)


@dataclass(frozen=True, slots=True)
class MappingNode:
    entries: tuple[tuple[str, "Node"], ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self.entries)

    def keys(self) -> list[str]:
        return [k for k, _ in self.entries]

    def items(self) -> list[tuple[str, "Node"]]:
        return list(self.entries)

    def get(self, key: str) -> "Node | None":
        for k, v in self.entries:
            if k == key:
                return v
        return None

    def with_entry(self, key: str, node: "Node") -> "MappingNode":
        """Returns a copy with key set to node.

        An existing key keeps its position; a new key is appended.
        """
        if key in self:
            return MappingNode(tuple((k, node if k == key else v) for k, v in self.entries))
        return MappingNode(self.entries + ((key, node),))


Node = Union[ScalarNode, SequenceNode, MappingNode]


class TreeParseError(ValueError):
    pass


class AccessErrorKind(str, Enum):
    MISSING_FIELD = "MissingField"
    WRONG_TYPE = "WrongType"


class TreeAccessError(LookupError):
    def __init__(self, kind: AccessErrorKind, field: str, detail: str) -> None:
        super().__init__(detail)
        self.kind = kind
        self.field = field
        self.detail = detail

    def __str__(self) -> str:
        return self.detail


# --------------------
# Conversion
# --------------------
def from_python(obj: object, *, where: str = "$") -> Node:
    """Converts parsed YAML/JSON primitives into tree nodes.

    Raises:
        TreeParseError: on non-string mapping keys or unsupported value types.
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return ScalarNode(obj)

    if isinstance(obj, dict):
        entries: list[tuple[str, Node]] = []
        for k, v in obj.items():
            if not isinstance(k, str):
                raise TreeParseError(f"{where}: mapping key {k!r} is not a string")
            entries.append((k, from_python(v, where=f"{where}.{k}")))
        return MappingNode(tuple(entries))

    if isinstance(obj, (list, tuple)):
        return SequenceNode(tuple(from_python(v, where=f"{where}[{i}]") for i, v in enumerate(obj)))

    # explicitly tagged timestamps still arrive as date objects; keep them as text
    if isinstance(obj, (dt.date, dt.time)):
        return ScalarNode(obj.isoformat())

    raise TreeParseError(f"{where}: unsupported value of type {type(obj).__name__}")


def to_python(node: Node) -> object:
    if isinstance(node, ScalarNode):
        return node.value
    if isinstance(node, SequenceNode):
        return [to_python(n) for n in node.items]
    return {k: to_python(v) for k, v in node.entries}


def parse_tree(text: str, *, source: str = "<string>") -> Node:
    """Parses YAML text into a tree. An empty document is an empty mapping."""
    try:
        raw = yaml.load(text, Loader=DocumentLoader)
    except yaml.YAMLError as e:
        raise TreeParseError(f"{source}: {e}") from e
    if raw is None:
        return MappingNode()
    return from_python(raw, where=source)


def dump_tree(node: Node) -> str:
    return yaml.safe_dump(to_python(node), sort_keys=False, allow_unicode=True, default_flow_style=False)


# --------------------
# Typed access
# --------------------
def _kind_name(node: Node) -> str:
    if isinstance(node, ScalarNode):
        return "null" if node.value is None else type(node.value).__name__
    if isinstance(node, SequenceNode):
        return "sequence"
    return "mapping"


def _wrong_type(field: str, expected: str, node: Node) -> TreeAccessError:
    return TreeAccessError(
        AccessErrorKind.WRONG_TYPE,
        field,
        f"Field '{field}' must be {expected}, got {_kind_name(node)}",
    )


def require_key(mapping: Node, key: str, *, where: str = "") -> Node:
    field = f"{where}.{key}" if where else key
    if not isinstance(mapping, MappingNode):
        raise _wrong_type(where or key, "a mapping", mapping)
    node = mapping.get(key)
    if node is None:
        raise TreeAccessError(AccessErrorKind.MISSING_FIELD, field, f"Missing field '{field}'")
    return node


def as_mapping(node: Node, field: str) -> MappingNode:
    if not isinstance(node, MappingNode):
        raise _wrong_type(field, "a mapping", node)
    return node


def as_sequence(node: Node, field: str) -> SequenceNode:
    if not isinstance(node, SequenceNode):
        raise _wrong_type(field, "a sequence", node)
    return node


def as_str(node: Node, field: str) -> str:
    if isinstance(node, ScalarNode) and isinstance(node.value, str):
        return node.value
    raise _wrong_type(field, "a string", node)


def as_float(node: Node, field: str) -> float:
    # bool is an int subclass; YAML true/false is not a number here
    if isinstance(node, ScalarNode) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return float(node.value)
    raise _wrong_type(field, "a number", node)


def as_bool(node: Node, field: str) -> bool:
    if isinstance(node, ScalarNode) and isinstance(node.value, bool):
        return node.value
    raise _wrong_type(field, "a boolean", node)
