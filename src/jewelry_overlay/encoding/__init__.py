"""
Encoding Module
===============

Frame packing for the landmark detector.

Components:
    - FrameEncoder: RawFrame -> EncodedFrame (planes concatenated in order)
    - decode_to_rgb: EncodedFrame -> upright RGB array for pixel-consuming backends
    - to_descriptor_space: upright image points -> descriptor coordinates

Example:
    from jewelry_overlay.encoding import FrameEncoder
    from jewelry_overlay.models.frame import PlatformFamily

    encoder = FrameEncoder()
    encoded = encoder.encode(raw_frame, PlatformFamily.IOS)
"""

from jewelry_overlay.encoding.encoder import (
    EmptyFrameError,
    FrameEncoder,
    TARGET_FORMATS,
    UnsupportedPlatformError,
    resolve_platform,
    resolve_rotation,
    resolve_target_format,
)
from jewelry_overlay.encoding.decoder import (
    FrameDecodeError,
    decode_to_rgb,
    to_descriptor_space,
)


__all__ = [
    "EmptyFrameError",
    "FrameEncoder",
    "TARGET_FORMATS",
    "UnsupportedPlatformError",
    "resolve_platform",
    "resolve_rotation",
    "resolve_target_format",
    "FrameDecodeError",
    "decode_to_rgb",
    "to_descriptor_space",
]
