"""
Capture Message Schema
======================

This module defines the Pydantic model for frame messages received from the
camera capture bridge.

The capture bridge runs next to the device camera and forwards every frame
of the image stream as one JSON WebSocket message.

Input Contract (from the capture bridge):
    {
        "frame_id": 1234,
        "timestamp": 1707321234.567,
        "platform": "android",
        "width": 640,
        "height": 480,
        "rotation": 270,
        "format": "yuv_420_888",
        "planes": [
            {"data": "<base64 plane bytes>", "bytes_per_row": 640},
            {"data": "<base64 plane bytes>", "bytes_per_row": 640},
            {"data": "<base64 plane bytes>", "bytes_per_row": 640}
        ]
    }

Guarantees (from the capture bridge):
    - planes are in the camera's native plane order
    - rotation is the raw sensor orientation in degrees

Example:
    from jewelry_overlay.models.input import CaptureMessage

    message = CaptureMessage.model_validate_json(raw)
    frame = message.to_raw_frame()
"""

import base64
import binascii
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from jewelry_overlay.models.frame import PixelFormat, Plane, RawFrame


class PlaneMessage(BaseModel):
    """
    One image plane as transported over the wire.

    Attributes:
        data: Base64-encoded plane bytes
        bytes_per_row: Row stride of the plane
    """

    data: str = Field(
        ...,
        description="Base64-encoded plane bytes",
    )

    bytes_per_row: int = Field(
        ...,
        ge=0,
        description="Row stride in bytes",
    )

    @field_validator("data")
    @classmethod
    def validate_base64(cls, v: str) -> str:
        """Reject payloads that are not valid base64."""
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"plane data is not valid base64: {e}")
        return v

    def to_plane(self) -> Plane:
        return Plane(
            data=base64.b64decode(self.data),
            bytes_per_row=self.bytes_per_row,
        )


class CaptureMessage(BaseModel):
    """
    Schema for frame messages received from the capture bridge.

    The platform is kept as a plain string here and travels with the
    RawFrame. Whether the platform is supported is decided by the
    FrameEncoder, so an unsupported platform drops the frame instead of
    failing message validation. When the device omits it, the session's
    configured platform is used.

    Attributes:
        frame_id: Monotonically increasing frame counter
        timestamp: UNIX timestamp when the frame was captured
        platform: Platform family name reported by the device
        width: Frame width in pixels
        height: Frame height in pixels
        rotation: Raw sensor orientation in degrees
        format: Source pixel format
        planes: Image planes in native order
    """

    frame_id: int = Field(
        ...,
        ge=0,
        description="Monotonically increasing frame counter from capture",
    )

    timestamp: float = Field(
        ...,
        gt=0,
        description="UNIX timestamp in seconds when the frame was captured",
    )

    platform: Optional[str] = Field(
        default=None,
        description="Platform family reported by the device (e.g. 'android')",
    )

    width: int = Field(..., ge=0, description="Frame width in pixels")

    height: int = Field(..., ge=0, description="Frame height in pixels")

    rotation: int = Field(
        default=0,
        description="Raw sensor orientation in degrees",
    )

    format: PixelFormat = Field(
        ...,
        description="Source pixel format",
    )

    planes: List[PlaneMessage] = Field(
        default_factory=list,
        description="Image planes in native order",
    )

    def to_raw_frame(self) -> RawFrame:
        """Convert the wire message into the internal RawFrame."""
        return RawFrame(
            planes=tuple(plane.to_plane() for plane in self.planes),
            width=self.width,
            height=self.height,
            pixel_format=self.format,
            rotation_degrees=self.rotation,
            frame_id=self.frame_id,
            timestamp=self.timestamp,
            platform=self.platform,
        )

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "frame_id": 1234,
                "timestamp": 1707321234.567,
                "platform": "ios",
                "width": 2,
                "height": 1,
                "rotation": 90,
                "format": "bgra8888",
                "planes": [{"data": "AAAA/wAAAP8=", "bytes_per_row": 8}],
            }
        }
