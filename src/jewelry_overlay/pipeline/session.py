"""
Overlay Session
===============

Per-capture-session orchestration of encode, detect and paint.

Data flow:
    submit(raw) -> FrameEncoder.encode -> detector.detect (task)
        -> LatestResultCell.publish
    paint(viewport) -> LatestResultCell.read -> OverlayProjector.render

Design Rules:
    - At most one detection in flight; frames arriving meanwhile are
      encoded and then skipped
    - The cell is the only state shared between detection and paint
    - The platform reported with each frame wins over the configured one
    - close() lets the in-flight detection finish before the detector is
      closed; its result is discarded, not applied
    - No error from a single frame or paint stops the session
"""

import asyncio
import logging
from typing import Optional, Union

from jewelry_overlay.detection.engine import LandmarkDetector
from jewelry_overlay.encoding.encoder import (
    EmptyFrameError,
    FrameEncoder,
    UnsupportedPlatformError,
)
from jewelry_overlay.models.frame import EncodedFrame, PlatformFamily, RawFrame
from jewelry_overlay.models.placement import OverlayFrame, Size
from jewelry_overlay.pipeline.latest import DetectionResult, LatestResultCell
from jewelry_overlay.projection.projector import OverlayProjector
from jewelry_overlay.projection.transform import InvalidFrameSizeError


logger = logging.getLogger(__name__)


class SessionMetrics:
    """Counters for OverlaySession observability."""

    __slots__ = (
        "frames_submitted",
        "encode_failures",
        "frames_skipped_busy",
        "detections_started",
        "detections_completed",
        "detection_errors",
        "results_discarded",
        "paints",
        "paints_skipped",
    )

    def __init__(self) -> None:
        self.frames_submitted: int = 0
        self.encode_failures: int = 0
        self.frames_skipped_busy: int = 0
        self.detections_started: int = 0
        self.detections_completed: int = 0
        self.detection_errors: int = 0
        self.results_discarded: int = 0
        self.paints: int = 0
        self.paints_skipped: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {name: getattr(self, name) for name in self.__slots__}


class OverlaySession:
    """
    Wires FrameEncoder, a LandmarkDetector and OverlayProjector together.

    Attributes:
        encoder: Frame encoder
        detector: Landmark detection backend
        projector: Landmark-to-viewport projector
        platform: Platform family used when a frame does not report one
        debug: Default for emitting debug primitives on paint
        close_timeout: Seconds close() waits for an in-flight detection
        cell: Latest detection result
        metrics: Operational counters

    Example:
        session = OverlaySession(encoder, detector, projector, "android")
        await session.submit(raw_frame)
        overlay = session.paint(Size(1080, 1920))
        await session.close()
    """

    def __init__(
        self,
        encoder: FrameEncoder,
        detector: LandmarkDetector,
        projector: OverlayProjector,
        platform: Union[PlatformFamily, str],
        debug: bool = False,
        close_timeout: float = 5.0,
    ) -> None:
        self.encoder = encoder
        self.detector = detector
        self.projector = projector
        self.platform = platform
        self.debug = debug
        self.close_timeout = close_timeout

        self.cell = LatestResultCell()
        self.metrics = SessionMetrics()

        self._inflight: Optional[asyncio.Task] = None
        self._closed: bool = False

        logger.info(f"OverlaySession created: platform={platform}, debug={debug}")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def detection_in_flight(self) -> bool:
        """Whether a detection call is still pending."""
        return self._inflight is not None and not self._inflight.done()

    async def submit(self, raw: RawFrame) -> bool:
        """
        Feed one captured frame into the pipeline.

        Args:
            raw: Native multi-plane frame

        Returns:
            True if a detection was started for this frame
        """
        if self._closed:
            return False

        self.metrics.frames_submitted += 1

        platform = raw.platform or self.platform

        try:
            encoded = self.encoder.encode(raw, platform)
        except EmptyFrameError as e:
            self.metrics.encode_failures += 1
            logger.warning(f"Dropping frame: {e}")
            return False
        except UnsupportedPlatformError as e:
            self.metrics.encode_failures += 1
            logger.error(f"Dropping frame {raw.frame_id}: {e}")
            return False

        if self.detection_in_flight:
            self.metrics.frames_skipped_busy += 1
            logger.debug(f"Detection busy, skipping frame {encoded.frame_id}")
            return False

        self.metrics.detections_started += 1
        self._inflight = asyncio.create_task(self._detect(encoded))
        return True

    async def _detect(self, frame: EncodedFrame) -> None:
        """Run one detection and publish its result."""
        try:
            landmark_sets = await self.detector.detect(frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.metrics.detection_errors += 1
            logger.error(f"Detection failed for frame {frame.frame_id}: {e}")
            return

        if self._closed:
            self.metrics.results_discarded += 1
            logger.debug(f"Session closed, discarding result for frame {frame.frame_id}")
            return

        self.metrics.detections_completed += 1
        self.cell.publish(
            DetectionResult(
                frame_id=frame.frame_id,
                frame_size=Size(float(frame.width), float(frame.height)),
                landmark_sets=tuple(landmark_sets),
            )
        )

    async def drain(self) -> None:
        """Wait for the in-flight detection, if any, to finish."""
        task = self._inflight
        if task is not None and not task.done():
            try:
                await task
            except asyncio.CancelledError:
                pass

    def paint(self, viewport: Size, debug: Optional[bool] = None) -> OverlayFrame:
        """
        Build the draw commands for one paint of a viewport.

        Args:
            viewport: Destination surface size
            debug: Override the session debug default

        Returns:
            OverlayFrame (empty when there is nothing to draw)
        """
        self.metrics.paints += 1
        result = self.cell.read()

        if result is None:
            return OverlayFrame.empty(viewport)

        try:
            return self.projector.render(
                result.landmark_sets,
                result.frame_size,
                viewport,
                debug=self.debug if debug is None else debug,
                frame_id=result.frame_id,
            )
        except InvalidFrameSizeError as e:
            self.metrics.paints_skipped += 1
            logger.warning(f"Skipping paint for frame {result.frame_id}: {e}")
            return OverlayFrame.empty(viewport)

    async def close(self) -> None:
        """Tear down the session; safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        # A detection may be running in a worker thread that cancellation
        # cannot stop, so the detector is closed only after it returns.
        task = self._inflight
        self._inflight = None
        if task is not None and not task.done():
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=self.close_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Detection still running after {self.close_timeout}s, cancelling"
                )
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self.detector.close()
        self.cell.clear()
        logger.info(f"OverlaySession closed: {self.metrics.to_dict()}")

    def metrics_dict(self) -> dict:
        """Session and encoder counters combined."""
        return {
            **self.metrics.to_dict(),
            **self.cell.metrics(),
            "detection_in_flight": self.detection_in_flight,
            "encoder": self.encoder.metrics(),
        }
