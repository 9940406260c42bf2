from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from skill_transfer.documents.store import DocumentPaths


REQUIRED_PARAMETERS = (
    "task_file_path",
    "setup_file_path",
    "motion_template_file_path",
    "motion_directory_path",
)

DEFAULT_DETECTOR_URL = "http://localhost:8765"
DEFAULT_DETECTOR_TIMEOUT_S = 30.0


@dataclass(frozen=True)
class KnowledgeConfig:
    """
    Startup parameters of the knowledge manager.
    The four paths are mandatory; the detector endpoint has defaults.
    """

    task_file_path: Path
    setup_file_path: Path
    motion_template_file_path: Path
    motion_directory_path: Path

    detector_url: str = DEFAULT_DETECTOR_URL
    detector_timeout_s: float = DEFAULT_DETECTOR_TIMEOUT_S

    @property
    def document_paths(self) -> DocumentPaths:
        return DocumentPaths(
            setup=self.setup_file_path,
            task=self.task_file_path,
            motion_template=self.motion_template_file_path,
        )
