"""
Frame Data Models
=================

Camera frame representations for the encoding stage.

This module defines the typed frame classes passed between the capture
bridge, the FrameEncoder and the landmark detector:
    - RawFrame: platform-native multi-plane image as delivered by capture
    - EncodedFrame: single contiguous buffer plus FrameDescriptor

Design Rules:
    - All frame types are immutable (frozen)
    - Plane order is significant and never changed
    - Frames do NOT decode or interpret pixel data
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class PixelFormat(str, Enum):
    """
    Pixel layouts understood by the pipeline.

    Attributes:
        YUV_420_888: Android camera planes (Y, U, V) with independent strides
        NV21: Y plane followed by interleaved VU, as expected by detectors
        BGRA8888: Single packed plane, 4 bytes per pixel (iOS)
    """

    YUV_420_888 = "yuv_420_888"
    NV21 = "nv21"
    BGRA8888 = "bgra8888"


class PlatformFamily(str, Enum):
    """
    Closed set of platform families a capture bridge may report.

    Only some families have a detector pixel format; see
    ``jewelry_overlay.encoding.encoder.TARGET_FORMATS``.
    """

    ANDROID = "android"
    IOS = "ios"
    DESKTOP = "desktop"
    WEB = "web"


class ImageRotation(int, Enum):
    """Canonical sensor rotations in degrees."""

    ROTATION_0 = 0
    ROTATION_90 = 90
    ROTATION_180 = 180
    ROTATION_270 = 270

    @property
    def degrees(self) -> int:
        return int(self.value)


@dataclass(frozen=True, slots=True)
class Plane:
    """
    One contiguous byte region of a multi-plane image.

    Attributes:
        data: Raw plane bytes
        bytes_per_row: Row stride in bytes (may exceed the visible width)
    """

    data: bytes
    bytes_per_row: int

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"Plane(len={len(self.data)}, bytes_per_row={self.bytes_per_row})"


@dataclass(frozen=True, slots=True)
class RawFrame:
    """
    Platform-native camera frame.

    Owned by the capture subsystem and handed to the encoder for the
    duration of one encode call.

    Attributes:
        planes: Ordered byte planes (luma first for every supported format)
        width: Frame width in pixels
        height: Frame height in pixels
        pixel_format: Source pixel layout
        rotation_degrees: Raw sensor orientation reported by the camera
        frame_id: Capture counter, used for logging and mock detection
        timestamp: Capture time (UNIX seconds)
        platform: Platform family reported by the device, if any
    """

    planes: Tuple[Plane, ...]
    width: int
    height: int
    pixel_format: PixelFormat
    rotation_degrees: int = 0
    frame_id: int = 0
    timestamp: float = 0.0
    platform: Optional[str] = None

    @property
    def total_bytes(self) -> int:
        """Sum of all plane lengths."""
        return sum(len(plane.data) for plane in self.planes)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump plane bytes."""
        return (
            f"RawFrame(frame_id={self.frame_id}, "
            f"size={self.width}x{self.height}, "
            f"format={self.pixel_format.value}, "
            f"planes={len(self.planes)}, "
            f"rotation={self.rotation_degrees})"
        )


@dataclass(frozen=True, slots=True)
class FrameDescriptor:
    """
    Metadata a landmark detector needs to interpret an encoded buffer.

    Attributes:
        width: Frame width in pixels
        height: Frame height in pixels
        rotation: Canonical rotation
        pixel_format: Target format for the current platform
        bytes_per_row: Row stride of the first (luma / packed) plane
    """

    width: int
    height: int
    rotation: ImageRotation
    pixel_format: PixelFormat
    bytes_per_row: int

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not isinstance(self.rotation, ImageRotation):
            raise ValueError(
                f"rotation must be a canonical ImageRotation, got {self.rotation!r}"
            )
        if self.bytes_per_row < 0:
            raise ValueError("bytes_per_row must be non-negative")


@dataclass(frozen=True, slots=True)
class EncodedFrame:
    """
    Detector-ready frame: all planes concatenated in plane order.

    Attributes:
        data: Contiguous buffer, length equals the sum of input plane lengths
        descriptor: Frame metadata
        frame_id: Carried over from the RawFrame
        timestamp: Carried over from the RawFrame
    """

    data: bytes
    descriptor: FrameDescriptor
    frame_id: int = 0
    timestamp: float = 0.0

    @property
    def width(self) -> int:
        return self.descriptor.width

    @property
    def height(self) -> int:
        return self.descriptor.height

    def __repr__(self) -> str:
        return (
            f"EncodedFrame(frame_id={self.frame_id}, "
            f"bytes={len(self.data)}, "
            f"size={self.descriptor.width}x{self.descriptor.height}, "
            f"format={self.descriptor.pixel_format.value}, "
            f"rotation={self.descriptor.rotation.degrees})"
        )
