"""
Frame Consumer
==============

WebSocket client for consuming camera frames from the capture bridge.

This module provides the FrameConsumer class which:
    - Connects to the capture bridge WebSocket
    - Validates frame messages against the CaptureMessage schema
    - Logs frame ordering and timing anomalies
    - Handles reconnection with a fixed backoff
    - Hands validated frames to the OverlaySession

Design Rules:
    - Does NOT encode or decode image data
    - Logs validation warnings but continues processing
    - Reconnects automatically on disconnect
    - Exposes metrics for health monitoring
"""

import asyncio
import logging
from typing import Any, Optional

import websockets
from pydantic import ValidationError
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedError,
    ConnectionClosedOK,
)

from jewelry_overlay.models.frame import RawFrame
from jewelry_overlay.models.input import CaptureMessage
from jewelry_overlay.pipeline.session import OverlaySession


logger = logging.getLogger(__name__)


class FrameConsumerMetrics:
    """Metrics for FrameConsumer observability."""

    __slots__ = (
        "frames_received",
        "frames_forwarded",
        "reconnect_count",
        "last_frame_id",
        "last_timestamp",
        "validation_warnings",
        "parse_errors",
    )

    def __init__(self) -> None:
        self.frames_received: int = 0
        self.frames_forwarded: int = 0
        self.reconnect_count: int = 0
        self.last_frame_id: int = -1
        self.last_timestamp: float = 0.0
        self.validation_warnings: int = 0
        self.parse_errors: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_received": self.frames_received,
            "frames_forwarded": self.frames_forwarded,
            "reconnect_count": self.reconnect_count,
            "last_frame_id": self.last_frame_id,
            "last_timestamp": self.last_timestamp,
            "validation_warnings": self.validation_warnings,
            "parse_errors": self.parse_errors,
        }


class FrameConsumer:
    """
    WebSocket consumer for capture bridge frames.

    Attributes:
        url: WebSocket URL to connect to
        session: OverlaySession receiving validated frames
        connected: Whether currently connected
        metrics: Operational metrics

    Example:
        consumer = FrameConsumer(
            url="ws://localhost:8765/ws/camera",
            session=session,
            reconnect_backoff_ms=500,
        )

        task = asyncio.create_task(consumer.run())

        # Later, stop gracefully
        await consumer.stop()
        await task
    """

    def __init__(
        self,
        url: str,
        session: OverlaySession,
        reconnect_backoff_ms: int = 500,
        max_reconnect_attempts: int = 0,
    ) -> None:
        """
        Initialize frame consumer.

        Args:
            url: WebSocket URL of the capture bridge
            session: Session to submit validated frames to
            reconnect_backoff_ms: Backoff between reconnect attempts
            max_reconnect_attempts: Max attempts (0 = unlimited)
        """
        self.url = url
        self.session = session
        self.reconnect_backoff_ms = reconnect_backoff_ms
        self.max_reconnect_attempts = max_reconnect_attempts

        self._websocket: Optional[Any] = None
        self._connected: bool = False
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()

        self.metrics = FrameConsumerMetrics()

    @property
    def connected(self) -> bool:
        """Whether currently connected to the capture bridge."""
        return self._connected

    async def run(self) -> None:
        """
        Start consuming frames.

        Runs indefinitely, reconnecting on disconnect.
        Call stop() to terminate gracefully.
        """
        self._running = True
        self._stop_event.clear()

        logger.info(f"FrameConsumer starting, connecting to {self.url}")

        while self._running:
            try:
                await self._connect_and_consume()
            except Exception as e:
                if not self._running:
                    break

                logger.error(f"Connection error: {e}")
                self._connected = False

                if (
                    self.max_reconnect_attempts > 0
                    and self.metrics.reconnect_count >= self.max_reconnect_attempts
                ):
                    logger.error(
                        f"Max reconnect attempts ({self.max_reconnect_attempts}) exceeded"
                    )
                    break

                self.metrics.reconnect_count += 1
                backoff_sec = self.reconnect_backoff_ms / 1000.0
                logger.info(
                    f"Reconnecting in {backoff_sec:.1f}s "
                    f"(attempt {self.metrics.reconnect_count})"
                )

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=backoff_sec)
                    break
                except asyncio.TimeoutError:
                    pass

        logger.info("FrameConsumer stopped")

    async def stop(self) -> None:
        """
        Stop consuming gracefully.

        Signals the run loop to exit and closes the connection.
        """
        logger.info("FrameConsumer stopping...")
        self._running = False
        self._stop_event.set()

        if self._websocket is not None:
            try:
                await self._websocket.close()
            except ConnectionClosed:
                pass

        self._connected = False

    async def _connect_and_consume(self) -> None:
        """Connect to the WebSocket and consume messages until disconnect."""
        async with websockets.connect(
            self.url,
            ping_interval=20,
            ping_timeout=10,
            close_timeout=5,
            max_size=None,
        ) as ws:
            self._websocket = ws
            self._connected = True
            logger.info(f"Connected to capture bridge: {self.url}")

            try:
                async for message in ws:
                    if not self._running:
                        break
                    await self.handle_message(message)

            except ConnectionClosedOK:
                logger.info("Connection closed normally")
            except ConnectionClosedError as e:
                logger.warning(f"Connection closed with error: {e}")
                raise
            finally:
                self._connected = False
                self._websocket = None

    async def handle_message(self, message: Any) -> bool:
        """
        Validate one message and submit it to the session.

        Args:
            message: Raw JSON text (or bytes) from the WebSocket

        Returns:
            True if the frame was forwarded to the session
        """
        frame = self._parse_and_validate(message)
        if frame is None:
            return False

        self.metrics.frames_received += 1
        self.metrics.last_frame_id = frame.frame_id
        self.metrics.last_timestamp = frame.timestamp

        await self.session.submit(frame)
        self.metrics.frames_forwarded += 1
        return True

    def _parse_and_validate(self, raw: Any) -> Optional[RawFrame]:
        """
        Parse and validate a raw WebSocket message.

        Performs ordering and timing validation. Logs warnings
        for violations but does not reject frames.

        Args:
            raw: Raw JSON string from WebSocket

        Returns:
            Validated RawFrame, or None on parse error
        """
        try:
            message = CaptureMessage.model_validate_json(raw)
        except ValidationError as e:
            self.metrics.parse_errors += 1
            logger.error(f"Invalid capture message: {e.error_count()} error(s): {e}")
            return None

        frame_id = message.frame_id
        timestamp = message.timestamp

        if self.metrics.last_frame_id >= 0:
            expected_id = self.metrics.last_frame_id + 1
            if frame_id != expected_id:
                self.metrics.validation_warnings += 1
                if frame_id < expected_id:
                    logger.warning(
                        f"Frame ID went backwards: got {frame_id}, "
                        f"expected {expected_id}"
                    )
                else:
                    gap = frame_id - expected_id
                    logger.warning(
                        f"Frame ID gap: got {frame_id}, expected {expected_id} "
                        f"(gap of {gap} frames)"
                    )

        if self.metrics.last_timestamp > 0 and timestamp < self.metrics.last_timestamp:
            self.metrics.validation_warnings += 1
            logger.warning(
                f"Timestamp went backwards: got {timestamp:.3f}, "
                f"previous was {self.metrics.last_timestamp:.3f}"
            )

        return message.to_raw_frame()
