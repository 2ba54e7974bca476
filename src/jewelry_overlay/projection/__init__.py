"""
Projection Module
=================

Maps detector landmarks from frame space into viewport space and places
accessories on the chin / ear anchors.

Components:
    - compute_transform: contain-fit scale + letterbox offsets
    - project: uniform affine map of a landmark set
    - place_accessories: necklace + earring rectangles for one face
    - OverlayProjector: per-paint driver with per-face error isolation
"""

from jewelry_overlay.projection.transform import (
    InvalidFrameSizeError,
    compute_transform,
    project,
    project_box,
)
from jewelry_overlay.projection.placement import (
    AccessoryLayout,
    InsufficientLandmarksError,
    MAX_REQUIRED_INDEX,
    place_accessories,
)
from jewelry_overlay.projection.projector import OverlayProjector


__all__ = [
    "InvalidFrameSizeError",
    "compute_transform",
    "project",
    "project_box",
    "AccessoryLayout",
    "InsufficientLandmarksError",
    "MAX_REQUIRED_INDEX",
    "place_accessories",
    "OverlayProjector",
]
