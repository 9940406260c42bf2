from __future__ import annotations

import logging
from typing import Iterable

from skill_transfer.core.types import ObjectFeature
from skill_transfer.documents.store import DocumentStore
from skill_transfer.errors import DetectionError

from .detector import FeatureDetector

logger = logging.getLogger(__name__)


class FeatureAcquirer:
    """Fills the setup document's object features from the detector.

    Pairs are detected one at a time, in the order given. Each result is
    written to the store before the next call, so a failure leaves every
    earlier feature in place.
    """

    def __init__(self, *, store: DocumentStore, detector: FeatureDetector) -> None:
        self.store = store
        self.detector = detector

    def acquire(self, required: Iterable[ObjectFeature]) -> int:
        """Detects and stores every required feature. Returns how many were written.

        Raises:
            DetectionError: on the first failing pair; later pairs are not attempted.
        """
        count = 0
        for rf in required:
            request = ObjectFeature(object=rf.object, feature=rf.feature)
            try:
                result = self.detector.detect(request)
            except DetectionError:
                raise
            except Exception as e:
                raise DetectionError(
                    f"Detector crashed for {request.object}/{request.feature}",
                    data={"object": request.object, "feature": request.feature},
                    object=request.object,
                    feature=request.feature,
                    cause=f"{type(e).__name__}: {e}",
                ) from e

            if result.object != request.object or result.feature != request.feature:
                raise DetectionError(
                    f"Detector answered {result.object}/{result.feature} for {request.object}/{request.feature}",
                    data={"object": request.object, "feature": request.feature},
                    object=request.object,
                    feature=request.feature,
                    cause="mismatched response",
                )
            if result.point is None:
                raise DetectionError(
                    f"Detector returned no point for {request.object}/{request.feature}",
                    data={"object": request.object, "feature": request.feature},
                    object=request.object,
                    feature=request.feature,
                    cause="missing point",
                )

            self.store.write_feature(result)
            count += 1
            logger.info(
                "Acquired feature %s/%s = (%g, %g, %g)",
                result.object,
                result.feature,
                result.point.x,
                result.point.y,
                result.point.z,
            )
        return count
