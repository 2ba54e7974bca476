"""
Landmark Detector Tests
=======================

Tests for the deterministic mock detector and the MediaPipe backend's
failure modes.
"""

import asyncio
import threading
from types import SimpleNamespace

import pytest

from jewelry_overlay.detection import (
    DetectorInitError,
    MediaPipeLandmarkDetector,
    MockLandmarkDetector,
)
from jewelry_overlay.models.frame import (
    EncodedFrame,
    FrameDescriptor,
    ImageRotation,
    PixelFormat,
)
from jewelry_overlay.models.landmarks import CHIN_INDEX, LEFT_EAR_INDEX, RIGHT_EAR_INDEX


def _frame(frame_id=0, width=640, height=480):
    return EncodedFrame(
        data=b"\x00",
        descriptor=FrameDescriptor(
            width=width,
            height=height,
            rotation=ImageRotation.ROTATION_0,
            pixel_format=PixelFormat.NV21,
            bytes_per_row=width,
        ),
        frame_id=frame_id,
    )


class TestMockLandmarkDetector:
    """Tests for MockLandmarkDetector."""

    def test_one_face_full_mesh(self):
        detector = MockLandmarkDetector()
        sets = asyncio.run(detector.detect(_frame()))

        assert len(sets) == 1
        assert len(sets[0]) == 468
        assert detector.calls == 1

    def test_anchor_geometry(self):
        """Chin is lowest; ears are the left and right extremes."""
        face = asyncio.run(MockLandmarkDetector().detect(_frame()))[0]
        box = face.bounding_box

        assert face.point(CHIN_INDEX).y == pytest.approx(box.bottom)
        assert face.point(LEFT_EAR_INDEX).x == pytest.approx(box.left)
        assert face.point(RIGHT_EAR_INDEX).x == pytest.approx(box.right)

    def test_points_inside_frame(self):
        face = asyncio.run(MockLandmarkDetector().detect(_frame(frame_id=30)))[0]
        box = face.bounding_box

        assert 0 <= box.left < box.right <= 640
        assert 0 <= box.top < box.bottom <= 480

    def test_deterministic(self):
        a = asyncio.run(MockLandmarkDetector().detect(_frame(frame_id=17)))[0]
        b = asyncio.run(MockLandmarkDetector().detect(_frame(frame_id=17)))[0]

        assert (a.points == b.points).all()

    def test_sway_moves_face(self):
        detector = MockLandmarkDetector(sway_period=40)
        first = asyncio.run(detector.detect(_frame(frame_id=0)))[0]
        quarter = asyncio.run(detector.detect(_frame(frame_id=10)))[0]

        assert quarter.bounding_box.center_x > first.bounding_box.center_x

    def test_multiple_faces(self):
        sets = asyncio.run(MockLandmarkDetector(face_count=3).detect(_frame()))

        centers = [s.bounding_box.center_x for s in sets]
        assert len(sets) == 3
        assert centers == sorted(centers)

    def test_no_faces(self):
        assert asyncio.run(MockLandmarkDetector(face_count=0).detect(_frame())) == []

    def test_short_mesh(self):
        """point_count below the anchor indices produces short sets."""
        face = asyncio.run(MockLandmarkDetector(point_count=100).detect(_frame()))[0]
        assert len(face) == 100

    def test_zero_size_frame(self):
        assert asyncio.run(MockLandmarkDetector().detect(_frame(width=0))) == []

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            MockLandmarkDetector(face_count=-1)
        with pytest.raises(ValueError):
            MockLandmarkDetector(point_count=0)

    def test_close(self):
        detector = MockLandmarkDetector()
        detector.close()
        assert detector.closed


class TestMediaPipeLandmarkDetector:
    """Failure modes that do not need a model bundle."""

    def test_missing_model(self, tmp_path):
        pytest.importorskip("mediapipe")
        from jewelry_overlay.detection import MediaPipeLandmarkDetector

        with pytest.raises(DetectorInitError):
            MediaPipeLandmarkDetector(model_path=str(tmp_path / "missing.task"))


class FakeLandmarker:
    """Stands in for the native FaceLandmarker; returns fixed landmarks."""

    def __init__(self, faces):
        self.faces = faces
        self.images = []
        self.closed = False

    def detect(self, image):
        self.images.append(image)
        return SimpleNamespace(face_landmarks=self.faces)

    def close(self):
        self.closed = True


def _offline_detector(landmarker):
    """MediaPipeLandmarkDetector wired to a fake landmarker, no model needed."""
    detector = MediaPipeLandmarkDetector.__new__(MediaPipeLandmarkDetector)
    detector.model_path = "face_landmarker.task"
    detector.max_faces = 1
    detector._frame_counter = 0
    detector._error_count = 0
    detector._mp = SimpleNamespace(
        Image=lambda image_format, data: data,
        ImageFormat=SimpleNamespace(SRGB="srgb"),
    )
    detector._landmarker = landmarker
    detector._lock = threading.Lock()
    return detector


def _bgra_frame(width, height, rotation):
    return EncodedFrame(
        data=b"\x00" * (width * height * 4),
        descriptor=FrameDescriptor(
            width=width,
            height=height,
            rotation=rotation,
            pixel_format=PixelFormat.BGRA8888,
            bytes_per_row=width * 4,
        ),
    )


class TestMediaPipeLandmarkMapping:
    """Landmarks from the upright image come back in descriptor space."""

    def test_rotated_frame(self):
        landmarks = [SimpleNamespace(x=0.25, y=0.5), SimpleNamespace(x=1.0, y=1.0)]
        landmarker = FakeLandmarker([landmarks])
        detector = _offline_detector(landmarker)

        faces = asyncio.run(detector.detect(_bgra_frame(4, 2, ImageRotation.ROTATION_90)))

        # Upright image is 2 wide and 4 tall.
        assert landmarker.images[0].shape == (4, 2, 3)
        assert faces[0].point(0) == pytest.approx((2.0, 1.5))
        assert faces[0].point(1) == pytest.approx((4.0, 0.0))

    def test_unrotated_frame(self):
        landmarker = FakeLandmarker([[SimpleNamespace(x=0.5, y=0.5)]])
        detector = _offline_detector(landmarker)

        faces = asyncio.run(detector.detect(_bgra_frame(4, 2, ImageRotation.ROTATION_0)))

        assert faces[0].point(0) == pytest.approx((2.0, 1.0))

    def test_closed_detector_rejects_frames(self):
        landmarker = FakeLandmarker([])
        detector = _offline_detector(landmarker)

        detector.close()
        detector.close()

        assert landmarker.closed
        with pytest.raises(DetectorInitError):
            asyncio.run(detector.detect(_bgra_frame(4, 2, ImageRotation.ROTATION_0)))
