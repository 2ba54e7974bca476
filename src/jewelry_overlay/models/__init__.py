"""
Data Models
===========

Value types and wire schemas for the jewelry overlay service.

This module re-exports all data models for convenient access.

Models:
    Frame:
        - PixelFormat, PlatformFamily, ImageRotation: Closed enumerations
        - Plane, RawFrame: Platform-native capture frame
        - FrameDescriptor, EncodedFrame: Detector input

    Landmarks:
        - LandmarkPoint, BoundingBox, LandmarkSet: Detector output
        - CHIN_INDEX, LEFT_EAR_INDEX, RIGHT_EAR_INDEX: Anchor indices

    Placement:
        - Size, Transform: Frame-to-viewport mapping
        - AccessoryImage, AccessoryCatalog: Loaded accessory art
        - PlacementRect, DebugMarker, OverlayFrame: Draw commands

    Wire:
        - CaptureMessage: Schema for messages from the capture bridge
        - OverlayOutput: Output contract for renderers
"""

from jewelry_overlay.models.frame import (
    EncodedFrame,
    FrameDescriptor,
    ImageRotation,
    PixelFormat,
    Plane,
    PlatformFamily,
    RawFrame,
)
from jewelry_overlay.models.landmarks import (
    CHIN_INDEX,
    FACE_MESH_POINT_COUNT,
    LEFT_EAR_INDEX,
    RIGHT_EAR_INDEX,
    BoundingBox,
    LandmarkPoint,
    LandmarkSet,
)
from jewelry_overlay.models.placement import (
    AccessoryCatalog,
    AccessoryImage,
    AccessoryKind,
    DebugMarker,
    OverlayFrame,
    PlacementRect,
    ProjectedFace,
    Size,
    Transform,
)
from jewelry_overlay.models.input import CaptureMessage, PlaneMessage
from jewelry_overlay.models.output import OverlayOutput


__all__ = [
    # Frame
    "EncodedFrame",
    "FrameDescriptor",
    "ImageRotation",
    "PixelFormat",
    "Plane",
    "PlatformFamily",
    "RawFrame",
    # Landmarks
    "CHIN_INDEX",
    "FACE_MESH_POINT_COUNT",
    "LEFT_EAR_INDEX",
    "RIGHT_EAR_INDEX",
    "BoundingBox",
    "LandmarkPoint",
    "LandmarkSet",
    # Placement
    "AccessoryCatalog",
    "AccessoryImage",
    "AccessoryKind",
    "DebugMarker",
    "OverlayFrame",
    "PlacementRect",
    "ProjectedFace",
    "Size",
    "Transform",
    # Wire
    "CaptureMessage",
    "PlaneMessage",
    "OverlayOutput",
]
