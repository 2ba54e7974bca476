"""
Overlay Projector
=================

Turns one frame's landmark sets into a viewport-space draw command list.

This projector:
    - Computes the contain-fit transform once per paint
    - Projects every face with the same uniform transform
    - Places accessories per face, isolating per-face failures
    - Optionally emits debug primitives (face boxes, landmark markers)

Failure Policy:
    - InvalidFrameSizeError propagates: the whole paint is skipped
    - InsufficientLandmarksError is per face: the face is skipped and
      counted, sibling faces in the same frame still render
"""

import logging
from typing import List, Sequence

from jewelry_overlay.models.landmarks import BoundingBox, LandmarkSet
from jewelry_overlay.models.placement import (
    AccessoryCatalog,
    DebugMarker,
    OverlayFrame,
    PlacementRect,
    Size,
)
from jewelry_overlay.projection.placement import (
    AccessoryLayout,
    InsufficientLandmarksError,
    place_accessories,
)
from jewelry_overlay.projection.transform import compute_transform, project


logger = logging.getLogger(__name__)


class OverlayProjector:
    """
    Per-paint projection of landmark sets into accessory placements.

    Holds only read-only configuration: the accessory catalog and layout.

    Attributes:
        catalog: Accessory images
        layout: Placement proportions
        marker_radius: Radius of debug landmark markers

    Example:
        projector = OverlayProjector(catalog)
        frame = projector.render(landmark_sets, Size(640, 480), Size(1080, 1920))
        for rect in frame.placements:
            renderer.blit(rect)
    """

    def __init__(
        self,
        catalog: AccessoryCatalog,
        layout: AccessoryLayout = AccessoryLayout(),
        marker_radius: float = 3.0,
    ) -> None:
        """
        Initialize overlay projector.

        Args:
            catalog: Accessory images loaded at startup
            layout: Placement proportions
            marker_radius: Radius of debug landmark markers
        """
        self.catalog = catalog
        self.layout = layout
        self.marker_radius = marker_radius

        logger.info(
            f"OverlayProjector initialized: "
            f"necklace={catalog.necklace.width}x{catalog.necklace.height}, "
            f"earring={catalog.earring.width}x{catalog.earring.height}"
        )

    def render(
        self,
        landmark_sets: Sequence[LandmarkSet],
        frame_size: Size,
        viewport: Size,
        debug: bool = False,
        frame_id: int = -1,
    ) -> OverlayFrame:
        """
        Build the draw command list for one paint.

        Args:
            landmark_sets: All faces detected in the frame
            frame_size: Size of the frame the landmarks refer to
            viewport: Destination surface size
            debug: Also emit face boxes and landmark markers
            frame_id: Capture frame id, carried into the output

        Returns:
            OverlayFrame for this paint

        Raises:
            InvalidFrameSizeError: If frame_size has a zero dimension
        """
        transform = compute_transform(frame_size, viewport)

        if transform.is_empty:
            return OverlayFrame(viewport=viewport, transform=transform, frame_id=frame_id)

        placements: List[PlacementRect] = []
        boxes: List[BoundingBox] = []
        markers: List[DebugMarker] = []
        rendered = 0
        rejected = 0

        for face_index, landmark_set in enumerate(landmark_sets):
            face = project(landmark_set, transform)

            try:
                face_placements = place_accessories(
                    face.bounding_box,
                    face.points,
                    self.catalog,
                    self.layout,
                )
            except InsufficientLandmarksError as e:
                rejected += 1
                logger.warning(f"Skipping face {face_index} (frame={frame_id}): {e}")
                continue

            placements.extend(face_placements)
            rendered += 1

            if debug:
                boxes.append(face.bounding_box)
                markers.extend(
                    DebugMarker(x=float(x), y=float(y), radius=self.marker_radius)
                    for x, y in face.points
                )

        return OverlayFrame(
            viewport=viewport,
            transform=transform,
            placements=tuple(placements),
            debug_boxes=tuple(boxes),
            debug_markers=tuple(markers),
            faces_rendered=rendered,
            faces_rejected=rejected,
            frame_id=frame_id,
        )
