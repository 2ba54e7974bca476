"""
Frame Encoder
=============

Packs platform-native multi-plane camera frames into the byte layout and
metadata a landmark detector expects.

This encoder:
    - Concatenates plane bytes in their given order into one buffer
    - Resolves the raw sensor orientation to a canonical rotation
    - Resolves the detector pixel format from the platform family
    - Uses the first plane's row stride as the frame's bytes_per_row

Design Rules:
    - Pure and synchronous: no I/O, no retries
    - Fails fast BEFORE any detection work is started
    - Plane order is never changed (reordering corrupts chroma/luma alignment)
    - Unsupported platforms fail deterministically via a closed mapping
"""

import logging
from typing import Dict, Union

from jewelry_overlay.models.frame import (
    EncodedFrame,
    FrameDescriptor,
    ImageRotation,
    PixelFormat,
    PlatformFamily,
    RawFrame,
)


logger = logging.getLogger(__name__)


class EmptyFrameError(Exception):
    """Raised when a frame has no planes or a zero-length plane."""
    pass


class UnsupportedPlatformError(Exception):
    """Raised when no detector pixel format is known for the platform."""
    pass


# Detector input format per platform family. Families missing here are
# unsupported; adding a platform means adding an entry.
TARGET_FORMATS: Dict[PlatformFamily, PixelFormat] = {
    PlatformFamily.ANDROID: PixelFormat.NV21,
    PlatformFamily.IOS: PixelFormat.BGRA8888,
}


def resolve_rotation(degrees: int) -> ImageRotation:
    """
    Map a raw sensor orientation to a canonical rotation.

    Only exact matches of 0, 90, 180 and 270 are recognised. Any other value
    falls back to ROTATION_0. The fallback is lossy: landmarks for such a
    frame are reported in the unrotated orientation.

    Args:
        degrees: Raw orientation reported by the camera

    Returns:
        Canonical ImageRotation
    """
    try:
        return ImageRotation(degrees)
    except ValueError:
        logger.debug(f"Non-canonical rotation {degrees}, falling back to 0")
        return ImageRotation.ROTATION_0


def resolve_platform(platform: Union[PlatformFamily, str]) -> PlatformFamily:
    """
    Parse a platform family name.

    Raises:
        UnsupportedPlatformError: If the name is not a known family
    """
    if isinstance(platform, PlatformFamily):
        return platform
    try:
        return PlatformFamily(str(platform).strip().lower())
    except ValueError:
        raise UnsupportedPlatformError(f"Unknown platform: {platform!r}")


def resolve_target_format(platform: Union[PlatformFamily, str]) -> PixelFormat:
    """
    Detector pixel format for a platform family.

    Raises:
        UnsupportedPlatformError: If the family has no known target format
    """
    family = resolve_platform(platform)
    target = TARGET_FORMATS.get(family)
    if target is None:
        raise UnsupportedPlatformError(
            f"No detector pixel format for platform '{family.value}'. "
            f"Supported: {', '.join(f.value for f in TARGET_FORMATS)}"
        )
    return target


class FrameEncoder:
    """
    Converts RawFrames into EncodedFrames.

    Stateless apart from counters exposed for observability.

    Attributes:
        frames_encoded: Frames successfully encoded
        frames_rejected: Frames that failed to encode

    Example:
        encoder = FrameEncoder()
        encoded = encoder.encode(raw_frame, PlatformFamily.ANDROID)
        landmark_sets = await detector.detect(encoded)
    """

    def __init__(self, log_every_n_frames: int = 300) -> None:
        """
        Initialize frame encoder.

        Args:
            log_every_n_frames: Log encode stats every N frames
        """
        self.log_every_n_frames = log_every_n_frames
        self.frames_encoded: int = 0
        self.frames_rejected: int = 0

    def encode(
        self,
        raw: RawFrame,
        platform: Union[PlatformFamily, str],
    ) -> EncodedFrame:
        """
        Encode a raw frame for the landmark detector.

        Args:
            raw: Native multi-plane frame from capture
            platform: Platform family the frame was captured on

        Returns:
            EncodedFrame whose buffer is the concatenation of all planes

        Raises:
            EmptyFrameError: If there are no planes or any plane is empty
            UnsupportedPlatformError: If the platform has no target format
        """
        try:
            return self._encode(raw, platform)
        except (EmptyFrameError, UnsupportedPlatformError):
            self.frames_rejected += 1
            raise

    def _encode(
        self,
        raw: RawFrame,
        platform: Union[PlatformFamily, str],
    ) -> EncodedFrame:
        if not raw.planes:
            raise EmptyFrameError(f"Frame {raw.frame_id} has no planes")

        for index, plane in enumerate(raw.planes):
            if len(plane.data) == 0:
                raise EmptyFrameError(
                    f"Frame {raw.frame_id} plane {index} is empty"
                )

        target_format = resolve_target_format(platform)
        rotation = resolve_rotation(raw.rotation_degrees)

        data = b"".join(plane.data for plane in raw.planes)

        descriptor = FrameDescriptor(
            width=raw.width,
            height=raw.height,
            rotation=rotation,
            pixel_format=target_format,
            bytes_per_row=raw.planes[0].bytes_per_row,
        )

        self.frames_encoded += 1
        if self.frames_encoded % self.log_every_n_frames == 0:
            logger.info(
                f"FrameEncoder [frame {raw.frame_id}]: "
                f"encoded={self.frames_encoded}, rejected={self.frames_rejected}"
            )

        return EncodedFrame(
            data=data,
            descriptor=descriptor,
            frame_id=raw.frame_id,
            timestamp=raw.timestamp,
        )

    def metrics(self) -> dict:
        """Encoder counters for observability."""
        return {
            "frames_encoded": self.frames_encoded,
            "frames_rejected": self.frames_rejected,
        }
