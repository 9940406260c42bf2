# src/skill_transfer/engine/composer.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from skill_transfer.core.types import StopCondition
from skill_transfer.documents.store import DocumentStore
from skill_transfer.documents.tree import (
    MappingNode,
    Node,
    ScalarNode,
    SequenceNode,
    TreeAccessError,
    TreeParseError,
    as_bool,
    as_float,
    as_mapping,
    as_sequence,
    as_str,
    dump_tree,
    parse_tree,
    require_key,
)
from skill_transfer.errors import ComposeError, ComposeErrorKind

logger = logging.getLogger(__name__)

SCOPE_KEY = "scope"
SOFT_CONSTRAINTS_KEY = "soft-constraints"
TOOL_GRASP_KEY = "tool-grasp"
TARGET_OBJECT_GRASP_KEY = "target-object-grasp"

# (document key, StopCondition field, reader)
STOP_FIELDS = (
    ("measured-velocity-min-threshold", "measured_velocity_min", as_float),
    ("desired-velocity-min-threshold", "desired_velocity_min", as_float),
    ("contact", "contact", as_bool),
    ("activation-distance", "activation_distance", as_float),
)


@dataclass(frozen=True)
class ComposedMotion:
    spec: str
    stop_condition: StopCondition


def _missing_field(e: TreeAccessError, *, index: int) -> ComposeError:
    return ComposeError(
        f"Motion phase {index}: {e}",
        data={"index": index, "access_error": e.kind.value},
        kind=ComposeErrorKind.MISSING_FIELD,
        field=e.field,
    )


def _scope_items(doc: Node, where: str) -> tuple[Node, ...]:
    # an absent scope contributes nothing
    node = as_mapping(doc, where).get(SCOPE_KEY)
    if node is None:
        return ()
    return as_sequence(node, f"{where}.{SCOPE_KEY}").items


class SpecComposer:
    """Builds complete motion specs from the template, a phase override and the setup.

    Each call re-reads the phase override file; nothing is cached, so the
    result always reflects the file currently on disk.
    """

    def __init__(self, *, store: DocumentStore, motion_directory: str | Path) -> None:
        self.store = store
        self.motion_directory = Path(motion_directory)

    def _phase(self, index: int) -> Node:
        try:
            return self.store.phase(index)
        except IndexError as e:
            raise ComposeError(
                str(e),
                data={"index": index, "motion_phase_count": self.store.motion_phase_count()},
                kind=ComposeErrorKind.INVALID_INDEX,
            ) from e

    def resolve_phase_file(self, index: int) -> Path:
        phase = self._phase(index)
        try:
            rel = as_str(require_key(phase, "file", where=f"motion-phases[{index}]"), f"motion-phases[{index}].file")
        except TreeAccessError as e:
            raise _missing_field(e, index=index) from e
        return (self.motion_directory / rel).resolve()

    def load_phase_spec(self, index: int) -> Node:
        path = self.resolve_phase_file(index)
        if not path.is_file():
            raise ComposeError(
                f"File not found: {path}",
                data={"index": index},
                kind=ComposeErrorKind.FILE_NOT_FOUND,
                path=str(path),
            )
        try:
            return parse_tree(path.read_text(encoding="utf-8"), source=str(path))
        except (TreeParseError, UnicodeDecodeError) as e:
            raise ComposeError(
                f"Could not parse motion phase file: {path}",
                data={"index": index, "error": str(e)},
                kind=ComposeErrorKind.PARSE_ERROR,
                path=str(path),
            ) from e

    def stop_condition(self, index: int) -> StopCondition:
        phase = self._phase(index)
        where = f"motion-phases[{index}].stop"
        try:
            stop = require_key(phase, "stop", where=f"motion-phases[{index}]")
            values = {
                attr: read(require_key(stop, key, where=where), f"{where}.{key}")
                for key, attr, read in STOP_FIELDS
            }
        except TreeAccessError as e:
            raise _missing_field(e, index=index) from e
        return StopCondition(**values)

    def merge(self, phase_spec: Node, *, index: int = -1) -> Node:
        """Merges template, setup grasps and one phase override into a single tree.

        Scope order: tool grasp, target object grasp, template scope, phase scope.
        soft-constraints is taken from the phase override as-is.
        """
        try:
            template = as_mapping(self.store.motion_template, "motion-template")
            setup = self.store.setup
            tool_grasp = require_key(setup, TOOL_GRASP_KEY, where="setup")
            target_grasp = require_key(setup, TARGET_OBJECT_GRASP_KEY, where="setup")

            scope = (
                MappingNode(((TOOL_GRASP_KEY, tool_grasp),)),
                MappingNode(((TARGET_OBJECT_GRASP_KEY, target_grasp),)),
                *_scope_items(template, "motion-template"),
                *_scope_items(phase_spec, "phase"),
            )
            constraints = as_mapping(phase_spec, "phase").get(SOFT_CONSTRAINTS_KEY)
            if constraints is None:
                constraints = ScalarNode(None)
        except TreeAccessError as e:
            raise _missing_field(e, index=index) from e

        # template nodes are immutable; with_entry returns a new tree
        result = template.with_entry(SCOPE_KEY, SequenceNode(scope))
        return result.with_entry(SOFT_CONSTRAINTS_KEY, constraints)

    def compose(self, index: int) -> ComposedMotion:
        """
        Returns the serialized spec and stop condition for one motion phase.

        Raises:
            ComposeError: InvalidIndex, FileNotFound, ParseError or MissingField.
                Nothing is returned on failure.
        """
        stop = self.stop_condition(index)
        phase_spec = self.load_phase_spec(index)
        merged = self.merge(phase_spec, index=index)
        spec = dump_tree(merged)
        logger.info("Composed motion spec for phase %d", index)
        return ComposedMotion(spec=spec, stop_condition=stop)
