"""
Pipeline Module
===============

Capture -> encode -> detect -> store; paint reads the store.

Components:
    - LatestResultCell: single-slot holder of the latest detection result
    - OverlaySession: per-session orchestration with at-most-one detection
"""

from jewelry_overlay.pipeline.latest import DetectionResult, LatestResultCell
from jewelry_overlay.pipeline.session import OverlaySession, SessionMetrics


__all__ = [
    "DetectionResult",
    "LatestResultCell",
    "OverlaySession",
    "SessionMetrics",
]
