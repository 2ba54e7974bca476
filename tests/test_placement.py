"""
Placement Tests
===============

Tests for necklace and earring rectangles.
"""

import numpy as np
import pytest

from jewelry_overlay.models.landmarks import BoundingBox
from jewelry_overlay.models.placement import AccessoryKind, Transform
from jewelry_overlay.projection import (
    AccessoryLayout,
    InsufficientLandmarksError,
    place_accessories,
    project,
)


class TestPlaceAccessories:
    """Tests for place_accessories."""

    def test_concrete_scenario(self, face_landmarks, catalog):
        """Box (100,50,300,250) at scale 2, offset 10: necklace 360x144 at (230, 520)."""
        face = project(face_landmarks, Transform(scale=2.0, offset_x=10.0, offset_y=10.0))
        necklace, left, right = place_accessories(face.bounding_box, face.points, catalog)

        assert face.bounding_box == BoundingBox(210, 110, 610, 510)
        assert necklace.kind is AccessoryKind.NECKLACE
        assert necklace.x == pytest.approx(230.0)
        assert necklace.y == pytest.approx(520.0)
        assert necklace.width == pytest.approx(360.0)
        assert necklace.height == pytest.approx(144.0)

        assert left.kind is AccessoryKind.LEFT_EARRING
        assert right.kind is AccessoryKind.RIGHT_EARRING
        assert left.width == pytest.approx(80.0)
        assert (left.center_x, left.center_y) == pytest.approx((210.0, 310.0))
        assert (right.center_x, right.center_y) == pytest.approx((610.0, 310.0))

    def test_necklace_aspect_ratio(self, face_points, catalog):
        """Necklace height is 0.4 of its width regardless of source aspect."""
        box = BoundingBox(0, 0, 123.0, 50.0)
        necklace = place_accessories(box, face_points, catalog)[0]

        assert necklace.height / necklace.width == pytest.approx(0.4)
        assert necklace.width == pytest.approx(0.9 * 123.0)
        assert necklace.center_x == pytest.approx(box.center_x)

    def test_earrings_square_and_centred(self, face_points, catalog):
        box = BoundingBox(100, 50, 300, 250)
        _, left, right = place_accessories(box, face_points, catalog)

        for rect, anchor in ((left, face_points[234]), (right, face_points[454])):
            assert rect.width == rect.height == pytest.approx(40.0)
            assert rect.center_x == pytest.approx(anchor[0])
            assert rect.center_y == pytest.approx(anchor[1])

    def test_source_sizes(self, face_points, catalog):
        """Placements carry the natural size of their image."""
        necklace, left, right = place_accessories(
            BoundingBox(100, 50, 300, 250), face_points, catalog
        )

        assert (necklace.source_width, necklace.source_height) == (800, 320)
        assert (left.source_width, left.source_height) == (100, 100)
        assert right.asset == "earring"

    def test_custom_layout(self, face_points, catalog):
        layout = AccessoryLayout(necklace_gap=0.0, earring_size_ratio=0.5)
        necklace, left, _ = place_accessories(
            BoundingBox(100, 50, 300, 250), face_points, catalog, layout
        )

        assert necklace.y == pytest.approx(250.0)
        assert left.width == pytest.approx(100.0)

    def test_degenerate_box(self, face_points, catalog):
        """A zero-width box yields zero-size accessories, not an error."""
        necklace, left, _ = place_accessories(BoundingBox(5, 5, 5, 5), face_points, catalog)
        assert necklace.width == 0.0
        assert left.width == 0.0

    @pytest.mark.parametrize("count", [0, 100, 454])
    def test_insufficient_landmarks(self, count, catalog):
        points = np.zeros((count, 2))
        with pytest.raises(InsufficientLandmarksError):
            place_accessories(BoundingBox(0, 0, 10, 10), points, catalog)

    def test_minimum_landmark_count(self, catalog):
        """455 points reach index 454 and are enough."""
        placements = place_accessories(BoundingBox(0, 0, 10, 10), np.zeros((455, 2)), catalog)
        assert len(placements) == 3
