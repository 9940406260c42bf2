from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


JSON = Dict[str, Any]


@dataclass(frozen=True)
class Point:
    x: float
    y: float
    z: float

    def to_dict(self) -> JSON:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(frozen=True)
class ObjectFeature:
    """
    Descriptor exchanged with the feature detector.
    Requests carry only object + feature; responses fill in the point.
    """
    object: str
    feature: str
    point: Optional[Point] = None

    def with_point(self, point: Point) -> "ObjectFeature":
        return ObjectFeature(object=self.object, feature=self.feature, point=point)


@dataclass(frozen=True)
class StopCondition:
    measured_velocity_min: float
    desired_velocity_min: float
    contact: bool
    activation_distance: float

    def to_dict(self) -> JSON:
        return {
            "measured_velocity_min": self.measured_velocity_min,
            "desired_velocity_min": self.desired_velocity_min,
            "contact": self.contact,
            "activation_distance": self.activation_distance,
        }
