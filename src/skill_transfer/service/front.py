# src/skill_transfer/service/front.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional

from skill_transfer.core.types import JSON, StopCondition
from skill_transfer.errors import ComposeError, ComposeErrorKind

if TYPE_CHECKING:
    from skill_transfer.engine.manager import KnowledgeManager

logger = logging.getLogger(__name__)

GET_TASK_SPEC = "get_task_spec"
GET_MOTION_SPEC = "get_motion_spec"


@dataclass(frozen=True)
class GetTaskSpecResponse:
    motion_phase_count: int


@dataclass(frozen=True)
class GetMotionSpecRequest:
    index: int


@dataclass(frozen=True)
class GetMotionSpecResponse:
    """
    Either spec + stop_condition (ok) or error (failed request).
    A failed response never carries a partial spec.
    """

    spec: str = ""
    stop_condition: Optional[StopCondition] = None
    error: Optional[ComposeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> JSON:
        if self.error is not None:
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": True,
            "spec": self.spec,
            "stop_condition": self.stop_condition.to_dict() if self.stop_condition else None,
        }


class KnowledgeService:
    """Request handlers for get_task_spec / get_motion_spec.

    Instances are created by KnowledgeManager.start() once the manager is
    Ready. ComposeErrors are turned into failed responses; the service keeps
    serving afterwards.
    """

    def __init__(self, manager: "KnowledgeManager") -> None:
        self.manager = manager

    def get_task_spec(self) -> GetTaskSpecResponse:
        return GetTaskSpecResponse(motion_phase_count=self.manager.motion_phase_count())

    def get_motion_spec(self, request: GetMotionSpecRequest) -> GetMotionSpecResponse:
        try:
            composed = self.manager.compose(request.index)
        except ComposeError as e:
            logger.warning("get_motion_spec(index=%s) failed: %s [%s]", request.index, e, e.kind.value)
            return GetMotionSpecResponse(error=e)
        return GetMotionSpecResponse(spec=composed.spec, stop_condition=composed.stop_condition)

    def handle(self, name: str, payload: Optional[Mapping[str, object]] = None) -> JSON:
        """Dispatches a named request with a JSON-style payload."""
        payload = payload or {}

        if name == GET_TASK_SPEC:
            return {"ok": True, "motion_phase_count": self.get_task_spec().motion_phase_count}

        if name == GET_MOTION_SPEC:
            raw_index = payload.get("index")
            if isinstance(raw_index, bool) or not isinstance(raw_index, int):
                err = ComposeError(
                    f"Request field 'index' must be a non-negative integer, got {raw_index!r}",
                    kind=ComposeErrorKind.INVALID_INDEX,
                    field="index",
                )
                return GetMotionSpecResponse(error=err).to_dict()
            return self.get_motion_spec(GetMotionSpecRequest(index=raw_index)).to_dict()

        raise KeyError(f"Unknown request: {name!r}")
