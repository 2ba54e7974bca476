"""
MediaPipe Landmark Detector
===========================

Production landmark detector using the MediaPipe Tasks FaceLandmarker.

This detector:
    - Decodes the encoded frame to upright RGB (NV21 or BGRA8888)
    - Runs the FaceLandmarker off the event loop in a worker thread
    - Denormalises landmarks and maps them back to descriptor space
    - Uses the landmarks' extent as the face bounding box

Design Rules:
    - Fail fast on misconfiguration (missing package or model file)
    - Landmark indices are passed through unchanged (468/478 topology)
    - Never touches shared pipeline state; it only returns values
    - close() and the worker thread share a lock, so the native
      landmarker is never released mid-inference
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import List

import numpy as np

from jewelry_overlay.encoding.decoder import decode_to_rgb, to_descriptor_space
from jewelry_overlay.models.frame import EncodedFrame, FrameDescriptor
from jewelry_overlay.models.landmarks import LandmarkSet


logger = logging.getLogger(__name__)


class DetectorInitError(Exception):
    """Raised when the MediaPipe landmarker cannot be created."""
    pass


class MediaPipeLandmarkDetector:
    """
    Face landmark detector backed by MediaPipe FaceLandmarker.

    Attributes:
        model_path: Path to the face_landmarker.task model bundle
        max_faces: Maximum faces detected per frame
        min_detection_confidence: Face detection threshold
        min_tracking_confidence: Landmark tracking threshold
    """

    def __init__(
        self,
        model_path: str,
        max_faces: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ) -> None:
        """
        Initialize MediaPipe landmark detector.

        Args:
            model_path: Path to the face_landmarker.task model bundle
            max_faces: Maximum faces detected per frame
            min_detection_confidence: Face detection threshold
            min_tracking_confidence: Landmark tracking threshold

        Raises:
            ImportError: If mediapipe is not installed
            DetectorInitError: If the model cannot be loaded
        """
        self.model_path = model_path
        self.max_faces = max(1, max_faces)
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence

        self._frame_counter: int = 0
        self._error_count: int = 0

        self._mp = None
        self._landmarker = None
        self._lock = threading.Lock()
        self._init_landmarker()

        logger.info(
            f"MediaPipeLandmarkDetector initialized: model={model_path}, "
            f"max_faces={self.max_faces}"
        )

    def _init_landmarker(self) -> None:
        """Create the FaceLandmarker from the model bundle."""
        try:
            import mediapipe as mp
            from mediapipe.tasks import python as mp_python
            from mediapipe.tasks.python import vision
        except ImportError:
            raise ImportError(
                "mediapipe is required for MediaPipeLandmarkDetector. "
                "Install with: pip install 'jewelry-overlay[mediapipe]'"
            )

        if not Path(self.model_path).exists():
            raise DetectorInitError(
                f"FaceLandmarker model not found: {self.model_path}"
            )

        try:
            options = vision.FaceLandmarkerOptions(
                base_options=mp_python.BaseOptions(model_asset_path=self.model_path),
                output_face_blendshapes=False,
                output_facial_transformation_matrixes=False,
                num_faces=self.max_faces,
                min_face_detection_confidence=self.min_detection_confidence,
                min_tracking_confidence=self.min_tracking_confidence,
            )
            self._landmarker = vision.FaceLandmarker.create_from_options(options)
        except Exception as e:
            raise DetectorInitError(f"Failed to create FaceLandmarker: {e}")

        self._mp = mp

    async def detect(self, frame: EncodedFrame) -> List[LandmarkSet]:
        """
        Detect face landmarks in an encoded frame.

        Args:
            frame: Encoded frame (NV21 or BGRA8888)

        Returns:
            One LandmarkSet per detected face, in descriptor pixel coordinates

        Raises:
            FrameDecodeError: If the frame bytes do not match the descriptor
        """
        if self._landmarker is None:
            raise DetectorInitError("Detector is closed")

        self._frame_counter += 1
        rgb = decode_to_rgb(frame)

        return await asyncio.to_thread(self._detect_sync, rgb, frame.descriptor)

    def _detect_sync(
        self, rgb: np.ndarray, descriptor: FrameDescriptor
    ) -> List[LandmarkSet]:
        """Blocking detection; runs in a worker thread."""
        height, width = rgb.shape[:2]
        image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb)

        with self._lock:
            if self._landmarker is None:
                raise DetectorInitError("Detector is closed")
            result = self._landmarker.detect(image)

        landmark_sets: List[LandmarkSet] = []
        for face_landmarks in result.face_landmarks or []:
            points = np.array(
                [(lm.x * width, lm.y * height) for lm in face_landmarks],
                dtype=np.float64,
            )
            if len(points) == 0:
                continue
            landmark_sets.append(
                LandmarkSet.from_points(to_descriptor_space(points, descriptor))
            )

        logger.debug(
            f"MediaPipe detected {len(landmark_sets)} face(s) "
            f"(call {self._frame_counter})"
        )
        return landmark_sets

    def close(self) -> None:
        """Release the native landmarker."""
        with self._lock:
            if self._landmarker is None:
                return
            self._landmarker.close()
            self._landmarker = None
        logger.info("MediaPipeLandmarkDetector closed")
