"""
Encoded Frame Decoder
=====================

Converts detector-ready EncodedFrames into RGB pixel arrays.

Only backends that consume pixels (e.g. MediaPipe) need this. The
FrameEncoder itself never interprets pixel data.

Design Rules:
    - This is the ONLY place in the codebase that interprets frame bytes
    - Validates buffer length against the descriptor
    - Fails fast on short or malformed buffers
    - Row padding (bytes_per_row > visible width) is cropped away
    - Decoded images are rotated upright; to_descriptor_space maps points
      found in the upright image back to the unrotated descriptor space
"""

import logging

import cv2
import numpy as np

from jewelry_overlay.models.frame import (
    EncodedFrame,
    FrameDescriptor,
    ImageRotation,
    PixelFormat,
)


logger = logging.getLogger(__name__)


# Clockwise turn that brings the sensor image upright.
_UPRIGHT_ROTATE_CODES = {
    ImageRotation.ROTATION_90: cv2.ROTATE_90_CLOCKWISE,
    ImageRotation.ROTATION_180: cv2.ROTATE_180,
    ImageRotation.ROTATION_270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


class FrameDecodeError(Exception):
    """Raised when an encoded frame cannot be converted to pixels."""
    pass


def decode_to_rgb(frame: EncodedFrame) -> np.ndarray:
    """
    Decode an encoded frame to an upright RGB array.

    Args:
        frame: Encoded frame in NV21 or BGRA8888 layout

    Returns:
        RGB image as np.ndarray, dtype=uint8. Shape is (H, W, 3) for
        rotations 0 and 180 and (W, H, 3) for 90 and 270.

    Raises:
        FrameDecodeError: If the buffer does not match the descriptor
    """
    descriptor = frame.descriptor
    width, height = descriptor.width, descriptor.height

    if width <= 0 or height <= 0:
        raise FrameDecodeError(
            f"Invalid frame size for frame {frame.frame_id}: {width}x{height}"
        )

    buffer = np.frombuffer(frame.data, dtype=np.uint8)

    if descriptor.pixel_format is PixelFormat.NV21:
        rgb = _decode_nv21(buffer, width, height, descriptor.bytes_per_row, frame.frame_id)
    elif descriptor.pixel_format is PixelFormat.BGRA8888:
        rgb = _decode_bgra(buffer, width, height, descriptor.bytes_per_row, frame.frame_id)
    else:
        raise FrameDecodeError(
            f"Unsupported pixel format for frame {frame.frame_id}: "
            f"{descriptor.pixel_format.value}"
        )

    rotate_code = _UPRIGHT_ROTATE_CODES.get(descriptor.rotation)
    if rotate_code is None:
        return rgb
    return cv2.rotate(rgb, rotate_code)


def to_descriptor_space(points: np.ndarray, descriptor: FrameDescriptor) -> np.ndarray:
    """
    Map points from the upright decoded image back to descriptor space.

    Args:
        points: (N, 2) pixel coordinates in the image returned by decode_to_rgb
        descriptor: Descriptor of the frame the image was decoded from

    Returns:
        (N, 2) float64 coordinates in the unrotated width x height frame
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    u, v = points[:, 0], points[:, 1]
    width, height = float(descriptor.width), float(descriptor.height)

    if descriptor.rotation is ImageRotation.ROTATION_90:
        return np.column_stack((v, height - u))
    if descriptor.rotation is ImageRotation.ROTATION_180:
        return np.column_stack((width - u, height - v))
    if descriptor.rotation is ImageRotation.ROTATION_270:
        return np.column_stack((width - v, u))
    return points.copy()


def _decode_nv21(
    buffer: np.ndarray,
    width: int,
    height: int,
    bytes_per_row: int,
    frame_id: int,
) -> np.ndarray:
    """NV21: full-res Y rows followed by half-height interleaved VU rows."""
    if height % 2 != 0:
        raise FrameDecodeError(f"NV21 frame {frame_id} has odd height {height}")

    stride = max(bytes_per_row, width)
    rows = height * 3 // 2
    expected = stride * rows

    if buffer.size < expected:
        raise FrameDecodeError(
            f"NV21 buffer too short for frame {frame_id}: "
            f"{buffer.size} < {expected} bytes"
        )

    yuv = buffer[:expected].reshape(rows, stride)[:, :width]
    rgb = cv2.cvtColor(np.ascontiguousarray(yuv), cv2.COLOR_YUV2RGB_NV21)

    if rgb is None or rgb.shape != (height, width, 3):
        raise FrameDecodeError(f"NV21 conversion failed for frame {frame_id}")

    return rgb


def _decode_bgra(
    buffer: np.ndarray,
    width: int,
    height: int,
    bytes_per_row: int,
    frame_id: int,
) -> np.ndarray:
    """BGRA8888: single packed plane, 4 bytes per pixel."""
    stride = max(bytes_per_row, width * 4)
    expected = stride * height

    if buffer.size < expected:
        raise FrameDecodeError(
            f"BGRA buffer too short for frame {frame_id}: "
            f"{buffer.size} < {expected} bytes"
        )

    rows = buffer[:expected].reshape(height, stride)[:, : width * 4]
    bgra = np.ascontiguousarray(rows).reshape(height, width, 4)
    return cv2.cvtColor(bgra, cv2.COLOR_BGRA2RGB)
