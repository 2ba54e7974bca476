"""
Accessory Placement
===================

Computes viewport-space rectangles for each accessory from already
projected face geometry.

Anchors:
    - Necklace: below the face box, centred on the box's horizontal centre
    - Left earring: square centred on landmark 234 (left ear tragus)
    - Right earring: square centred on landmark 454 (right ear tragus)

Sizes are derived from the scaled face box width so accessories follow
the apparent face size. The necklace keeps a fixed height/width ratio
regardless of the source image's aspect ratio.
"""

from dataclasses import dataclass
from typing import List

import numpy as np

from jewelry_overlay.models.landmarks import (
    BoundingBox,
    LEFT_EAR_INDEX,
    RIGHT_EAR_INDEX,
    CHIN_INDEX,
)
from jewelry_overlay.models.placement import (
    AccessoryCatalog,
    AccessoryKind,
    PlacementRect,
)


# Highest landmark index referenced by placement.
REQUIRED_INDICES = (CHIN_INDEX, LEFT_EAR_INDEX, RIGHT_EAR_INDEX)
MAX_REQUIRED_INDEX = max(REQUIRED_INDICES)


class InsufficientLandmarksError(Exception):
    """Raised when a landmark set is too short for the anchor indices."""
    pass


@dataclass(frozen=True)
class AccessoryLayout:
    """
    Placement proportions.

    Attributes:
        necklace_width_ratio: Necklace width as a fraction of box width
        necklace_aspect_ratio: Necklace height as a fraction of its width
        necklace_gap: Gap between box bottom and necklace top (viewport units)
        earring_size_ratio: Earring side as a fraction of box width
    """

    necklace_width_ratio: float = 0.9
    necklace_aspect_ratio: float = 0.4
    necklace_gap: float = 10.0
    earring_size_ratio: float = 0.2


def place_necklace(
    box: BoundingBox,
    catalog: AccessoryCatalog,
    layout: AccessoryLayout,
) -> PlacementRect:
    """Necklace rectangle hanging below the scaled face box."""
    width = box.width * layout.necklace_width_ratio
    height = width * layout.necklace_aspect_ratio
    image = catalog.necklace
    return PlacementRect(
        kind=AccessoryKind.NECKLACE,
        asset=image.name,
        x=box.center_x - width / 2.0,
        y=box.bottom + layout.necklace_gap,
        width=width,
        height=height,
        source_width=image.width,
        source_height=image.height,
    )


def place_earring(
    kind: AccessoryKind,
    anchor_x: float,
    anchor_y: float,
    box: BoundingBox,
    catalog: AccessoryCatalog,
    layout: AccessoryLayout,
) -> PlacementRect:
    """Square earring rectangle centred on an ear landmark."""
    size = box.width * layout.earring_size_ratio
    image = catalog.earring
    return PlacementRect(
        kind=kind,
        asset=image.name,
        x=anchor_x - size / 2.0,
        y=anchor_y - size / 2.0,
        width=size,
        height=size,
        source_width=image.width,
        source_height=image.height,
    )


def place_accessories(
    box: BoundingBox,
    points: np.ndarray,
    catalog: AccessoryCatalog,
    layout: AccessoryLayout = AccessoryLayout(),
) -> List[PlacementRect]:
    """
    Place every accessory for one projected face.

    Args:
        box: Scaled face bounding box
        points: Scaled landmarks, shape (N, 2)
        catalog: Accessory images (for natural sizes and asset names)
        layout: Placement proportions

    Returns:
        Placements in draw order: necklace, left earring, right earring

    Raises:
        InsufficientLandmarksError: If points do not reach index 454
    """
    count = len(points)
    if count <= MAX_REQUIRED_INDEX:
        raise InsufficientLandmarksError(
            f"Landmark set has {count} points, placement needs index "
            f"{MAX_REQUIRED_INDEX} (at least {MAX_REQUIRED_INDEX + 1} points)"
        )

    left_x, left_y = points[LEFT_EAR_INDEX]
    right_x, right_y = points[RIGHT_EAR_INDEX]

    return [
        place_necklace(box, catalog, layout),
        place_earring(
            AccessoryKind.LEFT_EARRING,
            float(left_x),
            float(left_y),
            box,
            catalog,
            layout,
        ),
        place_earring(
            AccessoryKind.RIGHT_EARRING,
            float(right_x),
            float(right_y),
            box,
            catalog,
            layout,
        ),
    ]
