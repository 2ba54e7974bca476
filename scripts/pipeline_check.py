#!/usr/bin/env python3
"""
Pipeline Check Script
=====================

Standalone script to exercise capture ingestion, detection and painting.

This script:
    1. Connects to a capture bridge (or starts a synthetic one with --synthetic)
    2. Runs the overlay session with the mock landmark detector
    3. Paints a viewport and logs stats every report interval
    4. Reports a final summary

Usage:
    python scripts/pipeline_check.py --synthetic --duration 20
    python scripts/pipeline_check.py --url ws://192.168.1.20:8765/ws/camera
"""

import argparse
import asyncio
import base64
import json
import logging
import os
import sys
import time
from typing import Optional

import numpy as np
import websockets

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from jewelry_overlay.detection import MockLandmarkDetector
from jewelry_overlay.encoding import FrameEncoder
from jewelry_overlay.models.placement import Size
from jewelry_overlay.pipeline import OverlaySession
from jewelry_overlay.projection import OverlayProjector
from jewelry_overlay.render import load_catalog
from jewelry_overlay.stream import FrameConsumer


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def synthetic_message(frame_id: int, width: int, height: int) -> str:
    """One Android-style capture message with Y and interleaved VU planes."""
    luma = np.full((height, width), 16 + (frame_id % 200), dtype=np.uint8)
    chroma = np.full((height // 2, width), 128, dtype=np.uint8)
    return json.dumps({
        "frame_id": frame_id,
        "timestamp": time.time(),
        "platform": "android",
        "width": width,
        "height": height,
        "rotation": 270,
        "format": "yuv_420_888",
        "planes": [
            {"data": base64.b64encode(luma.tobytes()).decode("ascii"), "bytes_per_row": width},
            {"data": base64.b64encode(chroma.tobytes()).decode("ascii"), "bytes_per_row": width},
        ],
    })


async def serve_synthetic(port: int, fps: int, width: int, height: int):
    """Start a local capture bridge streaming synthetic frames."""

    async def handler(websocket):
        frame_id = 0
        while True:
            await websocket.send(synthetic_message(frame_id, width, height))
            frame_id += 1
            await asyncio.sleep(1.0 / fps)

    server = await websockets.serve(handler, "127.0.0.1", port, max_size=None)
    logger.info(f"Synthetic capture bridge on ws://127.0.0.1:{port}/ws/camera")
    return server


async def run_check(
    url: str,
    duration: int,
    viewport: Size,
    report_interval: int,
    synthetic_port: Optional[int],
) -> dict:
    """
    Run the pipeline check.

    Returns:
        Final metrics dict
    """
    logger.info("=" * 60)
    logger.info("Overlay Pipeline Check")
    logger.info("=" * 60)
    logger.info(f"Capture URL: {url}")
    logger.info(f"Duration: {duration} seconds")
    logger.info(f"Viewport: {viewport}")
    logger.info("=" * 60)

    server = None
    if synthetic_port is not None:
        server = await serve_synthetic(synthetic_port, fps=30, width=640, height=480)

    session = OverlaySession(
        encoder=FrameEncoder(),
        detector=MockLandmarkDetector(),
        projector=OverlayProjector(load_catalog("", "")),
        platform="android",
    )
    consumer = FrameConsumer(url=url, session=session, reconnect_backoff_ms=500)
    consumer_task = asyncio.create_task(consumer.run())

    start_time = time.time()
    last_report_time = start_time
    placements_seen = 0

    try:
        while time.time() - start_time < duration:
            overlay = session.paint(viewport)
            placements_seen = max(placements_seen, len(overlay.placements))

            if time.time() - last_report_time >= report_interval:
                stats = session.metrics_dict()
                logger.info("-" * 40)
                logger.info(f"  Connected: {consumer.connected}")
                logger.info(f"  Frames received: {consumer.metrics.frames_received}")
                logger.info(f"  Detections completed: {stats['detections_completed']}")
                logger.info(f"  Skipped while busy: {stats['frames_skipped_busy']}")
                logger.info(f"  Placements this paint: {len(overlay.placements)}")
                last_report_time = time.time()

            await asyncio.sleep(0.033)

    except KeyboardInterrupt:
        logger.info("Check interrupted by user")
    finally:
        await consumer.stop()
        try:
            await asyncio.wait_for(consumer_task, timeout=5.0)
        except asyncio.TimeoutError:
            consumer_task.cancel()
            try:
                await consumer_task
            except asyncio.CancelledError:
                pass
        await session.close()
        if server is not None:
            server.close()
            await server.wait_closed()

    stats = session.metrics_dict()
    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Frames received: {consumer.metrics.frames_received}")
    logger.info(f"Parse errors: {consumer.metrics.parse_errors}")
    logger.info(f"Encode failures: {stats['encode_failures']}")
    logger.info(f"Detections completed: {stats['detections_completed']}")
    logger.info(f"Max placements per paint: {placements_seen}")
    logger.info("=" * 60)

    return {
        "frames_received": consumer.metrics.frames_received,
        "detections_completed": stats["detections_completed"],
        "placements": placements_seen,
    }


def main():
    parser = argparse.ArgumentParser(description="Overlay pipeline check")
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("JEWELRY_CAPTURE_URL", "ws://127.0.0.1:8765/ws/camera"),
        help="WebSocket URL of the capture bridge",
    )
    parser.add_argument("--synthetic", action="store_true", help="Serve synthetic frames locally")
    parser.add_argument("--port", type=int, default=8765, help="Synthetic bridge port")
    parser.add_argument("--duration", type=int, default=20, help="Check duration in seconds")
    parser.add_argument("--width", type=float, default=1080, help="Viewport width")
    parser.add_argument("--height", type=float, default=1920, help="Viewport height")
    parser.add_argument("--report-interval", type=int, default=5, help="Seconds between reports")

    args = parser.parse_args()

    result = asyncio.run(run_check(
        url=args.url,
        duration=args.duration,
        viewport=Size(args.width, args.height),
        report_interval=args.report_interval,
        synthetic_port=args.port if args.synthetic else None,
    ))

    sys.exit(0 if result["placements"] > 0 else 1)


if __name__ == "__main__":
    main()
