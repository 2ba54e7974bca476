"""
Placement Models
================

Viewport-space geometry and draw commands produced by the projector.

Core Concepts:
    - Size: width/height pair (frame size or viewport size)
    - Transform: uniform scale + offset mapping frame space to viewport space
    - PlacementRect: where to blit one accessory image
    - OverlayFrame: the complete draw command list for one paint

All values are frame-local and immutable. The only long-lived inputs are
the accessory images in the AccessoryCatalog, which are read-only.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from jewelry_overlay.models.landmarks import BoundingBox, LandmarkPoint


@dataclass(frozen=True, slots=True)
class Size:
    """Width and height of a frame or render surface."""

    width: float
    height: float

    def __repr__(self) -> str:
        return f"Size({self.width:g}x{self.height:g})"


@dataclass(frozen=True, slots=True)
class Transform:
    """
    Uniform frame-to-viewport mapping.

    (x, y) -> (x * scale + offset_x, y * scale + offset_y)

    Recomputed every paint; never cached across frames because either
    the frame size or the viewport size may change.

    Attributes:
        scale: Uniform scale factor (>= 0)
        offset_x: Horizontal letterbox padding
        offset_y: Vertical letterbox padding
    """

    scale: float
    offset_x: float = 0.0
    offset_y: float = 0.0

    def __post_init__(self) -> None:
        if self.scale < 0:
            raise ValueError("scale must be non-negative")

    @classmethod
    def identity(cls) -> "Transform":
        return cls(scale=1.0, offset_x=0.0, offset_y=0.0)

    @classmethod
    def empty(cls) -> "Transform":
        """Transform for a viewport that is not ready (nothing is drawn)."""
        return cls(scale=0.0, offset_x=0.0, offset_y=0.0)

    @property
    def is_empty(self) -> bool:
        return self.scale == 0.0

    def apply(self, x: float, y: float) -> LandmarkPoint:
        return LandmarkPoint(
            x * self.scale + self.offset_x,
            y * self.scale + self.offset_y,
        )

    def apply_array(self, points: np.ndarray) -> np.ndarray:
        """Apply to an (N, 2) array, returning a new array."""
        offset = np.array([self.offset_x, self.offset_y], dtype=np.float64)
        return points * self.scale + offset


class AccessoryKind(str, Enum):
    """Accessory instances placed on each face."""

    NECKLACE = "necklace"
    LEFT_EARRING = "left_earring"
    RIGHT_EARRING = "right_earring"


@dataclass(frozen=True)
class AccessoryImage:
    """
    Decoded accessory image.

    Attributes:
        name: Asset identifier (e.g. "necklace")
        width: Natural pixel width
        height: Natural pixel height
        pixels: Optional BGRA array of shape (height, width, 4)
    """

    name: str
    width: int
    height: int
    pixels: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Accessory image '{self.name}' must have positive size, "
                f"got {self.width}x{self.height}"
            )


@dataclass(frozen=True)
class AccessoryCatalog:
    """
    Accessory images loaded once at startup.

    The earring image is shared by both ears.
    """

    necklace: AccessoryImage
    earring: AccessoryImage

    def for_kind(self, kind: AccessoryKind) -> AccessoryImage:
        if kind is AccessoryKind.NECKLACE:
            return self.necklace
        return self.earring


@dataclass(frozen=True, slots=True)
class PlacementRect:
    """
    Destination rectangle for one accessory instance, in viewport space.

    Carries the natural size of the source image so a renderer can do a
    rect-to-rect blit without further lookups.

    Attributes:
        kind: Which accessory this is
        asset: Name of the AccessoryImage to draw
        x: Left edge
        y: Top edge
        width: Rectangle width
        height: Rectangle height
        source_width: Natural pixel width of the asset
        source_height: Natural pixel height of the asset
    """

    kind: AccessoryKind
    asset: str
    x: float
    y: float
    width: float
    height: float
    source_width: int
    source_height: int

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2.0

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2.0


@dataclass(frozen=True, slots=True)
class ProjectedFace:
    """
    One landmark set mapped into viewport space.

    Attributes:
        bounding_box: Scaled face box
        points: Scaled landmarks, shape (N, 2)
    """

    bounding_box: BoundingBox
    points: np.ndarray

    def point(self, index: int) -> LandmarkPoint:
        x, y = self.points[index]
        return LandmarkPoint(float(x), float(y))


@dataclass(frozen=True, slots=True)
class DebugMarker:
    """Filled circle drawn at one projected landmark."""

    x: float
    y: float
    radius: float


@dataclass(frozen=True, slots=True)
class OverlayFrame:
    """
    Complete draw command list for one paint.

    Renderers must treat every OverlayFrame as "repaint everything".

    Attributes:
        viewport: Destination surface size
        transform: Frame-to-viewport transform used for this paint
        placements: Accessory rectangles, in draw order
        debug_boxes: Scaled face boxes (empty unless debug is enabled)
        debug_markers: Scaled landmark markers (empty unless debug is enabled)
        faces_rendered: Faces that produced placements
        faces_rejected: Faces skipped due to invalid landmark data
        frame_id: Capture frame the landmarks came from (-1 if none)
    """

    viewport: Size
    transform: Transform
    placements: Tuple[PlacementRect, ...] = ()
    debug_boxes: Tuple[BoundingBox, ...] = ()
    debug_markers: Tuple[DebugMarker, ...] = ()
    faces_rendered: int = 0
    faces_rejected: int = 0
    frame_id: int = -1

    @classmethod
    def empty(cls, viewport: Size) -> "OverlayFrame":
        """Nothing to draw this paint; the camera preview stays live."""
        return cls(viewport=viewport, transform=Transform.empty())

    @property
    def is_empty(self) -> bool:
        return not self.placements and not self.debug_boxes and not self.debug_markers
