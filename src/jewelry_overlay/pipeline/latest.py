"""
Latest Result Cell
==================

Single-slot handoff between detection completion and paint.

Detection completes on its own schedule; paint runs on another. The cell
holds exactly one immutable DetectionResult and replaces it wholesale on
every publish.

Design Rules:
    - One writer (the session's detection task), any number of paint reads
    - publish is a single assignment; readers never see partial state
    - Older results are overwritten, never queued
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

from jewelry_overlay.models.landmarks import LandmarkSet
from jewelry_overlay.models.placement import Size


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DetectionResult:
    """
    Immutable outcome of one detection call.

    Attributes:
        frame_id: Capture frame the landmarks were detected in
        frame_size: Width/height of that frame (landmark coordinate space)
        landmark_sets: One entry per detected face
        completed_at: Monotonic completion time
    """

    frame_id: int
    frame_size: Size
    landmark_sets: Tuple[LandmarkSet, ...] = ()
    completed_at: float = field(default_factory=time.monotonic)

    @property
    def face_count(self) -> int:
        return len(self.landmark_sets)

    def __repr__(self) -> str:
        return (
            f"DetectionResult(frame={self.frame_id}, "
            f"faces={self.face_count}, size={self.frame_size})"
        )


class LatestResultCell:
    """
    Holder of the most recent DetectionResult.

    Example:
        cell = LatestResultCell()
        cell.publish(result)   # detection task
        current = cell.read()  # paint
    """

    def __init__(self) -> None:
        self._result: Optional[DetectionResult] = None
        self._publish_count: int = 0

    @property
    def publish_count(self) -> int:
        """Results published since creation."""
        return self._publish_count

    def publish(self, result: DetectionResult) -> None:
        """Replace the current result."""
        self._result = result
        self._publish_count += 1
        logger.debug(f"Published {result!r}")

    def read(self) -> Optional[DetectionResult]:
        """Current result, or None if nothing was published yet."""
        return self._result

    def clear(self) -> None:
        self._result = None

    def metrics(self) -> dict:
        result = self._result
        return {
            "publish_count": self._publish_count,
            "latest_frame_id": result.frame_id if result else -1,
            "latest_face_count": result.face_count if result else 0,
        }
