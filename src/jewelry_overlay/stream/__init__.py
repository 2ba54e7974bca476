"""
Stream Module
=============

Ingestion of camera frames from the capture bridge.

Example:
    from jewelry_overlay.stream import FrameConsumer

    consumer = FrameConsumer(
        url="ws://localhost:8765/ws/camera",
        session=session,
        reconnect_backoff_ms=500,
    )

    task = asyncio.create_task(consumer.run())
"""

from jewelry_overlay.stream.consumer import FrameConsumer, FrameConsumerMetrics


__all__ = [
    "FrameConsumer",
    "FrameConsumerMetrics",
]
