from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(slots=True)
class KnowledgeError(RuntimeError):
    """Base for every structured failure raised by the knowledge manager.

    The optional data payload carries machine-readable context (paths,
    field names, the failing object/feature pair) so that a service front
    can report the failure verbatim.
    """

    message: str
    data: dict[str, object] | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class ConfigError(KnowledgeError):
    """A mandatory startup parameter is missing or invalid."""

    parameter: str = ""


class LoadErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    PARSE_ERROR = "ParseError"


@dataclass(slots=True)
class LoadError(KnowledgeError):
    """A startup document could not be read or parsed."""

    kind: LoadErrorKind = LoadErrorKind.NOT_FOUND
    path: str = ""


@dataclass(slots=True)
class DetectionError(KnowledgeError):
    """The external feature detector failed for one (object, feature) pair."""

    object: str = ""
    feature: str = ""
    cause: str = ""


class ComposeErrorKind(str, Enum):
    INVALID_INDEX = "InvalidIndex"
    FILE_NOT_FOUND = "FileNotFound"
    PARSE_ERROR = "ParseError"
    MISSING_FIELD = "MissingField"


@dataclass(slots=True)
class ComposeError(KnowledgeError):
    """A single motion-spec request could not be served."""

    kind: ComposeErrorKind = ComposeErrorKind.MISSING_FIELD
    path: str | None = None
    field: str | None = None

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {"kind": self.kind.value, "message": self.message}
        if self.path is not None:
            out["path"] = self.path
        if self.field is not None:
            out["field"] = self.field
        return out


@dataclass(slots=True)
class LifecycleError(KnowledgeError):
    """An operation was invoked in a lifecycle state that does not allow it.

    This is a wiring bug, not a user error.
    """

    state: str = ""
