"""
Test Configuration
==================

Pytest fixtures and test configuration for the jewelry overlay service.
"""

import base64

import numpy as np
import pytest


@pytest.fixture
def make_raw_frame():
    """Factory for RawFrames built from plain byte strings."""
    from jewelry_overlay.models.frame import PixelFormat, Plane, RawFrame

    def _make(
        planes=(b"\x10" * 8, b"\x80" * 4),
        width=4,
        height=2,
        rotation=0,
        frame_id=0,
        pixel_format=PixelFormat.YUV_420_888,
        bytes_per_row=4,
        platform=None,
    ):
        return RawFrame(
            planes=tuple(Plane(data=data, bytes_per_row=bytes_per_row) for data in planes),
            width=width,
            height=height,
            pixel_format=pixel_format,
            rotation_degrees=rotation,
            frame_id=frame_id,
            timestamp=1707321234.5 + frame_id,
            platform=platform,
        )

    return _make


@pytest.fixture
def catalog():
    """Accessory catalog without pixel data (geometry only)."""
    from jewelry_overlay.models.placement import AccessoryCatalog, AccessoryImage

    return AccessoryCatalog(
        necklace=AccessoryImage(name="necklace", width=800, height=320),
        earring=AccessoryImage(name="earring", width=100, height=100),
    )


@pytest.fixture
def pixel_catalog():
    """Accessory catalog with solid, fully opaque BGRA images."""
    from jewelry_overlay.models.placement import AccessoryCatalog, AccessoryImage

    necklace = np.zeros((20, 50, 4), dtype=np.uint8)
    necklace[:, :] = (0, 255, 0, 255)
    earring = np.zeros((10, 10, 4), dtype=np.uint8)
    earring[:, :] = (0, 0, 255, 255)

    return AccessoryCatalog(
        necklace=AccessoryImage(name="necklace", width=50, height=20, pixels=necklace),
        earring=AccessoryImage(name="earring", width=10, height=10, pixels=earring),
    )


@pytest.fixture
def face_points():
    """
    468 landmarks inside the box (100, 50, 300, 250).

    Chin (152) at the bottom centre, ears (234, 454) at the left and right
    edges half way down.
    """
    points = np.tile([200.0, 150.0], (468, 1))
    points[0] = (100.0, 50.0)
    points[1] = (300.0, 50.0)
    points[152] = (200.0, 250.0)
    points[234] = (100.0, 150.0)
    points[454] = (300.0, 150.0)
    return points


@pytest.fixture
def face_landmarks(face_points):
    """LandmarkSet with box (100, 50, 300, 250)."""
    from jewelry_overlay.models.landmarks import LandmarkSet

    return LandmarkSet.from_points(face_points)


@pytest.fixture
def sample_capture_message():
    """Provide a sample capture bridge message for testing."""
    bgra = bytes([10, 20, 30, 255, 40, 50, 60, 255])
    return {
        "frame_id": 100,
        "timestamp": 1707321234.567,
        "platform": "ios",
        "width": 2,
        "height": 1,
        "rotation": 90,
        "format": "bgra8888",
        "planes": [
            {"data": base64.b64encode(bgra).decode("ascii"), "bytes_per_row": 8},
        ],
    }
