"""Shared fixtures: a small on-disk document set and fake detectors."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import pytest
import yaml

from skill_transfer.config.models import KnowledgeConfig
from skill_transfer.core.types import ObjectFeature, Point
from skill_transfer.errors import DetectionError


SETUP = {
    "tool-grasp": {"name": "G1", "frame": "tool"},
    "target-object-grasp": {"name": "G2", "frame": "target"},
    "object-features": {},
}

TASK = {
    "required-object-features": {
        "cup": ["rim", "handle"],
        "spoon": ["tip"],
    },
    "motion-phases": [
        {
            "file": "approach.yaml",
            "stop": {
                "measured-velocity-min-threshold": 0.1,
                "desired-velocity-min-threshold": 0.2,
                "contact": True,
                "activation-distance": 0.05,
            },
        },
        {
            "file": "pour.yaml",
            "stop": {
                "measured-velocity-min-threshold": 0.01,
                "desired-velocity-min-threshold": 0.02,
                "contact": False,
                "activation-distance": 1,
            },
        },
    ],
}

TEMPLATE = {
    "scope": [{"T": "template-var"}],
    "hard-constraints": [{"joint-limits": True}],
    "soft-constraints": [{"template-constraint": 1}],
}

APPROACH = {
    "scope": [{"A": "phase-var"}],
    "soft-constraints": [{"approach-constraint": 0.5}],
}

POUR = {
    "scope": [{"P1": 1}, {"P2": 2}],
    "soft-constraints": [{"pour-constraint": 2.0}],
}


def write_yaml(path: Path, data: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


@dataclass
class Workspace:
    root: Path
    setup: Path
    task: Path
    template: Path
    motions: Path

    def config(self) -> KnowledgeConfig:
        return KnowledgeConfig(
            task_file_path=self.task,
            setup_file_path=self.setup,
            motion_template_file_path=self.template,
            motion_directory_path=self.motions,
        )


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    motions = tmp_path / "motions"
    write_yaml(motions / "approach.yaml", APPROACH)
    write_yaml(motions / "pour.yaml", POUR)
    return Workspace(
        root=tmp_path,
        setup=write_yaml(tmp_path / "setup.yaml", SETUP),
        task=write_yaml(tmp_path / "task.yaml", TASK),
        template=write_yaml(tmp_path / "template.yaml", TEMPLATE),
        motions=motions,
    )


@dataclass
class FakeDetector:
    """Answers from a point table; records every request it receives."""

    points: dict[tuple[str, str], Point] = field(default_factory=dict)
    fail_on: set[tuple[str, str]] = field(default_factory=set)
    calls: list[ObjectFeature] = field(default_factory=list)
    respond: Callable[[ObjectFeature], ObjectFeature] | None = None

    def detect(self, request: ObjectFeature) -> ObjectFeature:
        self.calls.append(request)
        key = (request.object, request.feature)
        if key in self.fail_on:
            raise DetectionError(
                f"detector unreachable for {key}",
                object=request.object,
                feature=request.feature,
                cause="unreachable",
            )
        if self.respond is not None:
            return self.respond(request)
        return request.with_point(self.points.get(key, Point(0.0, 0.0, 0.0)))


@pytest.fixture
def detector() -> FakeDetector:
    return FakeDetector(
        points={
            ("cup", "rim"): Point(1.0, 2.0, 3.0),
            ("cup", "handle"): Point(0.5, 0.0, -0.5),
            ("spoon", "tip"): Point(-1.0, 0.25, 4.0),
        }
    )
