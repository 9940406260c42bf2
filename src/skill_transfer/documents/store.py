# src/skill_transfer/documents/store.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from skill_transfer.core.types import ObjectFeature, Point
from skill_transfer.errors import LoadError, LoadErrorKind

from .tree import (
    AccessErrorKind,
    MappingNode,
    Node,
    ScalarNode,
    SequenceNode,
    TreeAccessError,
    TreeParseError,
    as_float,
    as_mapping,
    as_sequence,
    as_str,
    parse_tree,
    require_key,
)

logger = logging.getLogger(__name__)

OBJECT_FEATURES_KEY = "object-features"
REQUIRED_FEATURES_KEY = "required-object-features"
MOTION_PHASES_KEY = "motion-phases"
POINT_KEY = "vector3"


@dataclass(frozen=True)
class DocumentPaths:
    setup: Path
    task: Path
    motion_template: Path


def load_document(path: str | Path) -> Node:
    """Reads and parses one startup document.

    Raises:
        LoadError: NotFound when the file cannot be read, ParseError when it
            is not a valid tree document.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(
            f"Could not read document: {p}",
            data={"error": f"{type(e).__name__}: {e}"},
            kind=LoadErrorKind.NOT_FOUND,
            path=str(p),
        ) from e

    try:
        return parse_tree(text, source=str(p))
    except TreeParseError as e:
        raise LoadError(
            f"Could not parse document: {p}",
            data={"error": str(e)},
            kind=LoadErrorKind.PARSE_ERROR,
            path=str(p),
        ) from e


def point_to_node(point: Point) -> MappingNode:
    return MappingNode(
        ((POINT_KEY, SequenceNode((ScalarNode(point.x), ScalarNode(point.y), ScalarNode(point.z)))),)
    )


def node_to_point(node: Node, field: str) -> Point:
    coords = as_sequence(require_key(node, POINT_KEY, where=field), f"{field}.{POINT_KEY}")
    if len(coords) != 3:
        raise TreeAccessError(
            AccessErrorKind.WRONG_TYPE,
            f"{field}.{POINT_KEY}",
            f"Field '{field}.{POINT_KEY}' must have exactly 3 components",
        )
    x, y, z = (as_float(c, f"{field}.{POINT_KEY}") for c in coords)
    return Point(x, y, z)


class DocumentStore:
    """Owns the setup, task and motion template documents.

    Task and template are read-only after load. The setup document is only
    changed through write_feature(), which swaps in a rebuilt tree.
    """

    def __init__(self, *, setup: Node, task: Node, motion_template: Node, paths: DocumentPaths | None = None) -> None:
        self._setup = setup
        self._task = task
        self._motion_template = motion_template
        self.paths = paths

    @classmethod
    def load(cls, paths: DocumentPaths) -> "DocumentStore":
        setup = load_document(paths.setup)
        logger.info("Loaded setup document from %s", paths.setup)
        task = load_document(paths.task)
        logger.info("Loaded task document from %s", paths.task)
        template = load_document(paths.motion_template)
        logger.info("Loaded motion template document from %s", paths.motion_template)
        return cls(setup=setup, task=task, motion_template=template, paths=paths)

    @property
    def setup(self) -> Node:
        return self._setup

    @property
    def task(self) -> Node:
        return self._task

    @property
    def motion_template(self) -> Node:
        return self._motion_template

    # --------------------
    # Task
    # --------------------
    def _task_field(self, key: str) -> Node | None:
        if not isinstance(self._task, MappingNode):
            raise LoadError(
                "Task document must be a mapping",
                kind=LoadErrorKind.PARSE_ERROR,
                path=str(self.paths.task) if self.paths else "",
            )
        return self._task.get(key)

    def required_features(self) -> list[ObjectFeature]:
        """Lists (object, feature) descriptors in task document order."""
        node = self._task_field(REQUIRED_FEATURES_KEY)
        if node is None:
            return []

        out: list[ObjectFeature] = []
        try:
            for object_name, features in as_mapping(node, REQUIRED_FEATURES_KEY).items():
                field = f"{REQUIRED_FEATURES_KEY}.{object_name}"
                for f in as_sequence(features, field):
                    out.append(ObjectFeature(object=object_name, feature=as_str(f, field)))
        except TreeAccessError as e:
            raise LoadError(
                f"Malformed '{REQUIRED_FEATURES_KEY}' in task document: {e}",
                kind=LoadErrorKind.PARSE_ERROR,
                path=str(self.paths.task) if self.paths else "",
            ) from e
        return out

    def _phases(self) -> SequenceNode:
        node = self._task_field(MOTION_PHASES_KEY)
        if node is None:
            return SequenceNode()
        try:
            return as_sequence(node, MOTION_PHASES_KEY)
        except TreeAccessError as e:
            raise LoadError(
                str(e),
                kind=LoadErrorKind.PARSE_ERROR,
                path=str(self.paths.task) if self.paths else "",
            ) from e

    def motion_phase_count(self) -> int:
        return len(self._phases())

    def phase(self, index: int) -> Node:
        phases = self._phases()
        # negative indices are not Python-style "from the end" here
        if index < 0 or index >= len(phases):
            raise IndexError(f"Motion phase index {index} out of range [0, {len(phases)})")
        return phases.items[index]

    # --------------------
    # Setup features
    # --------------------
    def write_feature(self, feature: ObjectFeature) -> None:
        """Sets setup.object-features[object][feature] = point (last write wins)."""
        if feature.point is None:
            raise ValueError(f"Feature {feature.object}/{feature.feature} has no point")

        setup = self._setup
        if not isinstance(setup, MappingNode):
            raise LoadError(
                "Setup document must be a mapping",
                kind=LoadErrorKind.PARSE_ERROR,
                path=str(self.paths.setup) if self.paths else "",
            )
        features = setup.get(OBJECT_FEATURES_KEY)
        features = features if isinstance(features, MappingNode) else MappingNode()
        per_object = features.get(feature.object)
        per_object = per_object if isinstance(per_object, MappingNode) else MappingNode()

        per_object = per_object.with_entry(feature.feature, point_to_node(feature.point))
        features = features.with_entry(feature.object, per_object)
        self._setup = setup.with_entry(OBJECT_FEATURES_KEY, features)

    def feature_point(self, object_name: str, feature_name: str) -> Point | None:
        if not isinstance(self._setup, MappingNode):
            return None
        features = self._setup.get(OBJECT_FEATURES_KEY)
        if not isinstance(features, MappingNode):
            return None
        per_object = features.get(object_name)
        if not isinstance(per_object, MappingNode):
            return None
        node = per_object.get(feature_name)
        if node is None:
            return None
        return node_to_point(node, f"{OBJECT_FEATURES_KEY}.{object_name}.{feature_name}")
