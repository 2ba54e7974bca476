"""
Landmark Detector
=================

Clean abstraction over the face landmark detection capability.

This module provides the LandmarkDetector protocol and a deterministic
MockLandmarkDetector. The detection algorithm itself is opaque: given an
encoded frame it produces zero or more landmark sets.

Design Rules:
    - Takes EncodedFrame directly (the detector owns any pixel decoding)
    - Returns landmark coordinates in frame space (descriptor width/height)
    - An empty list means no face found; it is NOT an error
    - Mock provides deterministic, stable output for testing
"""

import logging
import math
from typing import List, Protocol

import numpy as np

from jewelry_overlay.models.frame import EncodedFrame
from jewelry_overlay.models.landmarks import (
    CHIN_INDEX,
    FACE_MESH_POINT_COUNT,
    LEFT_EAR_INDEX,
    RIGHT_EAR_INDEX,
    LandmarkSet,
)


logger = logging.getLogger(__name__)


class LandmarkDetector(Protocol):
    """
    Protocol for landmark detection backends.

    All implementations must provide an async `detect` method that takes an
    EncodedFrame and returns the landmark sets found in it, and a `close`
    method releasing any native resources.

    This interface is implemented by:
        - MockLandmarkDetector (testing, running without a model)
        - MediaPipeLandmarkDetector (production)
    """

    async def detect(self, frame: EncodedFrame) -> List[LandmarkSet]:
        """
        Detect faces in a frame.

        Args:
            frame: Encoded frame with descriptor

        Returns:
            One LandmarkSet per detected face (possibly empty)
        """
        ...

    def close(self) -> None:
        """Release detector resources."""
        ...


class MockLandmarkDetector:
    """
    Deterministic mock landmark detector for testing.

    Generates synthetic face meshes using the frame_id as the time base.
    This ensures:
        - Reproducible results across runs
        - Smooth temporal motion (gentle horizontal sway)
        - Anchor indices at geometrically sensible positions

    Each face is an ellipse centred in its horizontal slot of the frame.
    Points are scattered inside the ellipse; the chin (152) sits at the
    bottom of the ellipse and the ears (234, 454) at its left/right ends.

    Attributes:
        face_count: Faces produced per frame
        point_count: Landmarks per face
        sway_amplitude: Horizontal sway as a fraction of frame width
        sway_period: Frames for one complete sway cycle
    """

    def __init__(
        self,
        face_count: int = 1,
        point_count: int = FACE_MESH_POINT_COUNT,
        sway_amplitude: float = 0.02,
        sway_period: int = 120,
    ) -> None:
        """
        Initialize mock landmark detector.

        Args:
            face_count: Faces to simulate per frame
            point_count: Landmarks per face
            sway_amplitude: Sway as a fraction of frame width
            sway_period: Frames for one complete sway cycle
        """
        if face_count < 0:
            raise ValueError("face_count must be non-negative")
        if point_count < 1:
            raise ValueError("point_count must be >= 1")

        self.face_count = face_count
        self.point_count = point_count
        self.sway_amplitude = sway_amplitude
        self.sway_period = max(1, sway_period)
        self.calls: int = 0
        self.closed: bool = False

        logger.info(
            f"MockLandmarkDetector initialized: faces={face_count}, "
            f"points={point_count}, period={sway_period} frames"
        )

    async def detect(self, frame: EncodedFrame) -> List[LandmarkSet]:
        """
        Generate deterministic landmark sets for a frame.

        Args:
            frame: Encoded frame (only size and frame_id are used)

        Returns:
            face_count landmark sets
        """
        self.calls += 1
        width = float(frame.width)
        height = float(frame.height)

        if width <= 0 or height <= 0:
            return []

        phase = (2 * math.pi * frame.frame_id) / self.sway_period
        sway = self.sway_amplitude * width * math.sin(phase)

        slot_width = width / max(1, self.face_count)
        return [
            self._synthesize_face(
                center_x=slot_width * (index + 0.5) + sway,
                center_y=height * 0.45,
                radius_x=slot_width * 0.2,
                radius_y=height * 0.25,
            )
            for index in range(self.face_count)
        ]

    def _synthesize_face(
        self,
        center_x: float,
        center_y: float,
        radius_x: float,
        radius_y: float,
    ) -> LandmarkSet:
        """Scatter points inside an ellipse and pin the anchors."""
        indices = np.arange(self.point_count)
        angles = indices * (2 * math.pi / self.point_count)
        # Fixed pseudo-random radial spread in [0.3, 0.95)
        radial = 0.3 + 0.65 * ((indices * 37) % 100) / 100.0

        points = np.column_stack([
            center_x + radius_x * radial * np.cos(angles),
            center_y + radius_y * radial * np.sin(angles),
        ])

        anchors = {
            CHIN_INDEX: (center_x, center_y + radius_y),
            LEFT_EAR_INDEX: (center_x - radius_x, center_y),
            RIGHT_EAR_INDEX: (center_x + radius_x, center_y),
        }
        for index, position in anchors.items():
            if index < self.point_count:
                points[index] = position

        return LandmarkSet.from_points(points)

    def close(self) -> None:
        """Nothing to release."""
        self.closed = True
