from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Protocol

from skill_transfer.core.types import JSON, ObjectFeature, Point
from skill_transfer.errors import DetectionError

logger = logging.getLogger(__name__)

DETECT_ENDPOINT = "detect_object_feature"


class FeatureDetector(Protocol):
    def detect(self, request: ObjectFeature) -> ObjectFeature:
        """
        Blocking round-trip to the detector.
        Returns the same descriptor with point filled in, raises DetectionError on failure.
        """
        ...


def _failure(request: ObjectFeature, cause: str, **extra: object) -> DetectionError:
    return DetectionError(
        f"Failed to call service {DETECT_ENDPOINT} for {request.object}/{request.feature}: {cause}",
        data={"object": request.object, "feature": request.feature, **extra},
        object=request.object,
        feature=request.feature,
        cause=cause,
    )


def _post_detect_request(*, url: str, request: ObjectFeature, timeout_s: float) -> tuple[int, str]:
    """Sends one detection request. Returns (status, body text); transport errors raise OSError."""
    payload = {"object_feature": {"object": request.object, "feature": request.feature}}
    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            return resp.status, resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        return int(e.code), e.read().decode("utf-8", errors="replace") if e.fp else ""


def _parse_point(raw: object) -> Point | None:
    if not isinstance(raw, dict):
        return None
    coords = []
    for axis in ("x", "y", "z"):
        v = raw.get(axis)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        coords.append(float(v))
    return Point(*coords)


@dataclass
class HttpFeatureDetector:
    """
    Feature detector reached over JSON/HTTP.

    Request:  POST {base_url}/detect_object_feature {"object_feature": {"object", "feature"}}
    Response: {"object_feature": {"object", "feature", "point": {"x", "y", "z"}}}
    A response of {"success": false, "message": ...} is an explicit failure.
    """

    base_url: str
    timeout_s: float = 30.0

    def _call(self, request: ObjectFeature) -> JSON:
        """Returns the response's object_feature mapping or raises DetectionError."""
        url = f"{self.base_url.rstrip('/')}/{DETECT_ENDPOINT}"
        try:
            status, text = _post_detect_request(url=url, request=request, timeout_s=self.timeout_s)
        except OSError as e:
            raise _failure(request, f"{type(e).__name__}: {e}") from e

        if status < 200 or status >= 300:
            raise _failure(request, f"HTTP {status}", body=text)

        try:
            body = json.loads(text) if text.strip() else {}
        except ValueError as e:
            raise _failure(request, "response is not JSON", body=text) from e
        if not isinstance(body, dict):
            raise _failure(request, "response is not a JSON object", body=text)

        if body.get("success") is False:
            raise _failure(request, str(body.get("message") or "detector reported failure"))

        of = body.get("object_feature")
        if not isinstance(of, dict):
            raise _failure(request, "response has no object_feature")
        return of

    def detect(self, request: ObjectFeature) -> ObjectFeature:
        of = self._call(request)
        point = _parse_point(of.get("point"))
        if point is None:
            raise _failure(request, "response has no valid point")

        logger.debug("Detector answered %s/%s -> %s", request.object, request.feature, point)
        return ObjectFeature(
            object=str(of.get("object", request.object)),
            feature=str(of.get("feature", request.feature)),
            point=point,
        )
