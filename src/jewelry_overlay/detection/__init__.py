"""
Detection Module
================

Face landmark detection for accessory anchoring.

This module provides a black-box abstraction for landmark detection.
The pipeline consumes ONLY landmark sets, never detector internals.

Components:
    - LandmarkDetector: Protocol for detection backends
    - MockLandmarkDetector: Deterministic mock for testing
    - MediaPipeLandmarkDetector: MediaPipe FaceLandmarker (production)

Design Philosophy:
    Detection is treated as a pluggable black box. Point indices follow
    the detector's fixed face mesh topology.
"""

from jewelry_overlay.detection.engine import (
    LandmarkDetector,
    MockLandmarkDetector,
)
from jewelry_overlay.detection.mediapipe_engine import (
    DetectorInitError,
    MediaPipeLandmarkDetector,
)

__all__ = [
    "LandmarkDetector",
    "MockLandmarkDetector",
    "DetectorInitError",
    "MediaPipeLandmarkDetector",
]
