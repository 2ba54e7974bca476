"""
Jewelry Overlay
===============

Real-time jewelry try-on: necklace and earring images placed on a live
camera feed from facial landmarks.

The package has two independent cores composed through a landmark detector:
    - encoding: packs platform-native camera frames for the detector
    - projection: maps detector landmarks into viewport space and places
      accessories on the chin and ear anchors

Components:
    - models: Frame, landmark and placement value types; wire schemas
    - detection: Landmark detector protocol, mock and MediaPipe backends
    - pipeline: Latest-result handoff and per-session orchestration
    - stream: WebSocket client for the capture bridge
    - render: Accessory assets and an OpenCV reference compositor

Example:
    from jewelry_overlay.config import settings
    from jewelry_overlay.models import OverlayOutput

    # The service is started via the FastAPI application
    # See main.py for entry point
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
