# src/skill_transfer/engine/manager.py
from __future__ import annotations

import logging
from typing import Optional

from skill_transfer.config.models import KnowledgeConfig
from skill_transfer.detection.acquirer import FeatureAcquirer
from skill_transfer.detection.detector import FeatureDetector, HttpFeatureDetector
from skill_transfer.documents.store import DocumentStore
from skill_transfer.engine.composer import ComposedMotion, SpecComposer
from skill_transfer.engine.state import ALLOWED_TRANSITIONS, LifecycleState
from skill_transfer.errors import LifecycleError
from skill_transfer.service.front import KnowledgeService

logger = logging.getLogger(__name__)


class KnowledgeManager:
    """Owns the loaded documents and gates when specs may be served.

    Construction loads the three startup documents and wires the detector
    (Created -> Initialized). start() acquires the required object features
    and only then registers the service (-> ObtainingKnowledge -> Ready).
    Any startup failure propagates; the manager never becomes Ready.
    """

    def __init__(self, config: KnowledgeConfig, *, detector: Optional[FeatureDetector] = None) -> None:
        self._state = LifecycleState.CREATED
        self.config = config

        self.store = DocumentStore.load(config.document_paths)
        if detector is None:
            detector = HttpFeatureDetector(base_url=config.detector_url, timeout_s=config.detector_timeout_s)
        self.detector: FeatureDetector = detector
        self.composer = SpecComposer(store=self.store, motion_directory=config.motion_directory_path)
        self.service: Optional[KnowledgeService] = None

        self._advance(LifecycleState.INITIALIZED)

    @property
    def state(self) -> LifecycleState:
        return self._state

    def _advance(self, target: LifecycleState) -> None:
        if ALLOWED_TRANSITIONS.get(self._state) is not target:
            raise LifecycleError(
                f"Invalid lifecycle transition {self._state.value} -> {target.value}",
                state=self._state.value,
            )
        logger.info("Knowledge manager: %s -> %s", self._state.value, target.value)
        self._state = target

    def _require(self, expected: LifecycleState, operation: str) -> None:
        if self._state is not expected:
            raise LifecycleError(
                f"{operation} requires state {expected.value}, current state is {self._state.value}",
                state=self._state.value,
            )

    def start(self) -> KnowledgeService:
        """Acquires required object features, then registers and returns the service front.

        Raises:
            DetectionError: acquisition failed; the manager stays in ObtainingKnowledge.
            LifecycleError: start() was already called.
        """
        self._require(LifecycleState.INITIALIZED, "start()")
        self._advance(LifecycleState.OBTAINING_KNOWLEDGE)

        required = self.store.required_features()
        logger.info("Acquiring %d required object feature(s)", len(required))
        FeatureAcquirer(store=self.store, detector=self.detector).acquire(required)

        self._advance(LifecycleState.READY)
        self.service = KnowledgeService(self)
        return self.service

    # --------------------
    # Ready-only operations
    # --------------------
    def motion_phase_count(self) -> int:
        self._require(LifecycleState.READY, "motion_phase_count()")
        return self.store.motion_phase_count()

    def compose(self, index: int) -> ComposedMotion:
        self._require(LifecycleState.READY, "compose()")
        return self.composer.compose(index)
