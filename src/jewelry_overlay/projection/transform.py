"""
Frame-to-Viewport Transform
===========================

Aspect-preserving "contain" fit of the camera frame inside the viewport.

The whole frame stays visible: the limiting axis is scaled to fit exactly
and the other axis is centred with equal padding on both sides
(letterbox / pillarbox).

Formulas:
    scale   = min(viewport_w / frame_w, viewport_h / frame_h)
    offset_x = (viewport_w - frame_w * scale) / 2
    offset_y = (viewport_h - frame_h * scale) / 2

A single uniform scale is applied to box corners AND landmark points.
Independent per-axis scales would stretch round accessories into ellipses.
"""

import logging
import math

from jewelry_overlay.models.landmarks import BoundingBox, LandmarkSet
from jewelry_overlay.models.placement import ProjectedFace, Size, Transform


logger = logging.getLogger(__name__)


class InvalidFrameSizeError(Exception):
    """Raised when the frame size makes the scale undefined."""
    pass


def compute_transform(frame_size: Size, viewport_size: Size) -> Transform:
    """
    Compute the contain-fit transform for one paint.

    Args:
        frame_size: Logical camera frame size (landmark coordinate space)
        viewport_size: Destination render surface size

    Returns:
        Transform mapping frame space to viewport space. A viewport with a
        zero, negative or non-finite dimension is not ready and yields
        Transform.empty().

    Raises:
        InvalidFrameSizeError: If the frame width or height is <= 0 or not finite
    """
    frame_w, frame_h = frame_size.width, frame_size.height
    view_w, view_h = viewport_size.width, viewport_size.height

    if not _is_positive(frame_w) or not _is_positive(frame_h):
        raise InvalidFrameSizeError(
            f"Frame size must be positive, got {frame_w}x{frame_h}"
        )

    if not _is_positive(view_w) or not _is_positive(view_h):
        logger.debug(f"Viewport not ready ({view_w}x{view_h}), nothing to draw")
        return Transform.empty()

    scale = min(view_w / frame_w, view_h / frame_h)
    offset_x = (view_w - frame_w * scale) / 2.0
    offset_y = (view_h - frame_h * scale) / 2.0

    return Transform(scale=scale, offset_x=offset_x, offset_y=offset_y)


def _is_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def project_box(box: BoundingBox, transform: Transform) -> BoundingBox:
    """Map a frame-space box into viewport space."""
    left, top = transform.apply(box.left, box.top)
    right, bottom = transform.apply(box.right, box.bottom)
    return BoundingBox(left=left, top=top, right=right, bottom=bottom)


def project(landmark_set: LandmarkSet, transform: Transform) -> ProjectedFace:
    """
    Map a landmark set into viewport space.

    The same affine map is applied to the bounding box and to every
    landmark point, so the identity transform returns the input unchanged.

    Args:
        landmark_set: Detector output in frame space
        transform: Frame-to-viewport transform

    Returns:
        ProjectedFace with scaled box and points
    """
    return ProjectedFace(
        bounding_box=project_box(landmark_set.bounding_box, transform),
        points=transform.apply_array(landmark_set.points),
    )
