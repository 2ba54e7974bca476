"""
Landmark Models
===============

Face landmark data produced by the detection capability.

Coordinates are in FRAME SPACE: the same pixel space as
FrameDescriptor.width / height, origin top-left, Y down.

Index Contract:
    Point indices follow the 468-point face mesh topology supplied by the
    detector. They are an external contract and are never renumbered.

        CHIN_INDEX       = 152
        LEFT_EAR_INDEX   = 234  (left ear tragus)
        RIGHT_EAR_INDEX  = 454  (right ear tragus)
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np


FACE_MESH_POINT_COUNT = 468

CHIN_INDEX = 152
LEFT_EAR_INDEX = 234
RIGHT_EAR_INDEX = 454


class LandmarkPoint(NamedTuple):
    """2D landmark position."""

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """
    Axis-aligned rectangle given by its edges.

    Attributes:
        left: Minimum X
        top: Minimum Y
        right: Maximum X
        bottom: Maximum Y
    """

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2.0

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2.0

    @classmethod
    def from_points(cls, points: np.ndarray) -> "BoundingBox":
        """Smallest box containing all (N, 2) points."""
        if len(points) == 0:
            raise ValueError("cannot bound an empty point set")
        mins = points.min(axis=0)
        maxs = points.max(axis=0)
        return cls(
            left=float(mins[0]),
            top=float(mins[1]),
            right=float(maxs[0]),
            bottom=float(maxs[1]),
        )


@dataclass(frozen=True, slots=True)
class LandmarkSet:
    """
    Landmarks for one detected face in one frame.

    Produced once per frame by the detector and consumed immediately by
    the projector. Not persisted.

    Attributes:
        bounding_box: Face box in frame space
        points: Landmark positions, shape (N, 2), float64
    """

    bounding_box: BoundingBox
    points: np.ndarray

    def __post_init__(self) -> None:
        """Validate point array shape."""
        if self.points.ndim != 2 or self.points.shape[1] != 2:
            raise ValueError(
                f"Expected points shape (N, 2), got {self.points.shape}"
            )

    @classmethod
    def from_points(
        cls,
        points,
        bounding_box: Optional[BoundingBox] = None,
    ) -> "LandmarkSet":
        """
        Build a landmark set from any (N, 2) sequence.

        Args:
            points: Sequence of (x, y) pairs
            bounding_box: Face box; defaults to the extent of the points
        """
        array = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if bounding_box is None:
            bounding_box = BoundingBox.from_points(array)
        return cls(bounding_box=bounding_box, points=array)

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def point(self, index: int) -> LandmarkPoint:
        """Landmark at a fixed topology index."""
        x, y = self.points[index]
        return LandmarkPoint(float(x), float(y))

    def __repr__(self) -> str:
        box = self.bounding_box
        return (
            f"LandmarkSet(points={len(self)}, "
            f"box=({box.left:.1f}, {box.top:.1f}, {box.right:.1f}, {box.bottom:.1f}))"
        )
