"""
Jewelry Overlay Main Application
================================

FastAPI entry point for the jewelry overlay service.

Capture frames arrive from the capture bridge over a WebSocket, are encoded
and sent to the landmark detector; renderers poll or subscribe for the
draw commands of their viewport.

Endpoints:
    GET  /             - Service information
    GET  /health       - Liveness probe (is process alive?)
    GET  /ready        - Readiness probe (capture connected or result available?)
    GET  /metrics      - Encoder / session / consumer counters
    GET  /overlay      - Draw commands for a viewport (JSON)
    GET  /overlay.png  - Draw commands rendered onto a blank canvas (PNG)
    WS   /ws/overlay   - Real-time draw command stream
"""

import asyncio
import logging
import os
import signal
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import cv2
from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from jewelry_overlay.config import settings
from jewelry_overlay.detection import (
    LandmarkDetector,
    MediaPipeLandmarkDetector,
    MockLandmarkDetector,
)
from jewelry_overlay.encoding import FrameEncoder
from jewelry_overlay.models.output import OverlayOutput, ViewportOut
from jewelry_overlay.models.placement import AccessoryCatalog, Size
from jewelry_overlay.pipeline import OverlaySession
from jewelry_overlay.projection import AccessoryLayout, OverlayProjector
from jewelry_overlay.render import OverlayCompositor, blank_canvas, load_catalog
from jewelry_overlay.stream import FrameConsumer


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_shutdown_flag: bool = False

_catalog: Optional[AccessoryCatalog] = None
_session: Optional[OverlaySession] = None
_frame_consumer: Optional[FrameConsumer] = None
_consumer_task: Optional[asyncio.Task] = None
_compositor: Optional[OverlayCompositor] = None
_startup_time: float = 0.0


# =============================================================================
# Getters
# =============================================================================

def get_session() -> Optional[OverlaySession]:
    return _session

def get_frame_consumer() -> Optional[FrameConsumer]:
    return _frame_consumer

def get_catalog() -> Optional[AccessoryCatalog]:
    return _catalog


# =============================================================================
# Signal Handlers
# =============================================================================

def _handle_sigterm(signum, frame):
    """Handle SIGTERM for graceful shutdown."""
    global _shutdown_flag
    logger.info("Received SIGTERM, initiating graceful shutdown...")
    _shutdown_flag = True


# =============================================================================
# Component Factories
# =============================================================================

def create_detector() -> LandmarkDetector:
    """
    Create landmark detector based on config.

    Fails fast if the MediaPipe backend is requested but unavailable.
    """
    backend = settings.detection.backend

    if backend == "mock":
        logger.info("Using MockLandmarkDetector")
        return MockLandmarkDetector(
            face_count=settings.detection.mock.face_count,
            sway_period=settings.detection.mock.sway_period,
        )

    elif backend == "mediapipe":
        logger.info(
            f"Using MediaPipeLandmarkDetector: "
            f"model={settings.detection.model_path}, "
            f"max_faces={settings.detection.max_faces}"
        )
        return MediaPipeLandmarkDetector(
            model_path=settings.detection.model_path,
            max_faces=settings.detection.max_faces,
            min_detection_confidence=settings.detection.min_detection_confidence,
            min_tracking_confidence=settings.detection.min_tracking_confidence,
        )

    else:
        raise ValueError(f"Unknown detection backend: {backend}")


def create_layout() -> AccessoryLayout:
    """Placement proportions from config."""
    placement = settings.placement
    return AccessoryLayout(
        necklace_width_ratio=placement.necklace_width_ratio,
        necklace_aspect_ratio=placement.necklace_aspect_ratio,
        necklace_gap=placement.necklace_gap,
        earring_size_ratio=placement.earring_size_ratio,
    )


def _paint_output(viewport: Size, debug: Optional[bool] = None) -> OverlayOutput:
    """Paint the current session state for a viewport."""
    session = get_session()
    include_debug = settings.render.debug_overlay if debug is None else debug
    frame = session.paint(viewport, debug=include_debug)
    return OverlayOutput.from_frame(frame, include_debug=include_debug)


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _catalog, _session, _frame_consumer, _consumer_task
    global _compositor, _startup_time, _shutdown_flag

    # signal handlers can only be installed from the main thread
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _handle_sigterm)

    _startup_time = time.time()
    _shutdown_flag = False
    logger.info(f"Starting {settings.app.name} {settings.app.version}")

    # Assets are loaded once; a bad path fails startup
    _catalog = load_catalog(
        settings.assets.necklace_path,
        settings.assets.earring_path,
    )

    projector = OverlayProjector(
        catalog=_catalog,
        layout=create_layout(),
        marker_radius=settings.render.landmark_marker_radius,
    )
    _session = OverlaySession(
        encoder=FrameEncoder(),
        detector=create_detector(),
        projector=projector,
        platform=settings.capture.platform,
        debug=settings.render.debug_overlay,
    )
    _compositor = OverlayCompositor()

    logger.info(f"Capture URL: {settings.capture.url}")
    _frame_consumer = FrameConsumer(
        url=settings.capture.url,
        session=_session,
        reconnect_backoff_ms=settings.capture.reconnect_backoff_ms,
        max_reconnect_attempts=settings.capture.max_reconnect_attempts,
    )
    _consumer_task = asyncio.create_task(
        _frame_consumer.run(),
        name="frame_consumer",
    )

    logger.info("All components started")

    yield

    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    if _frame_consumer:
        await _frame_consumer.stop()

    if _consumer_task:
        try:
            await asyncio.wait_for(_consumer_task, timeout=5.0)
        except asyncio.TimeoutError:
            _consumer_task.cancel()
            try:
                await _consumer_task
            except asyncio.CancelledError:
                pass

    if _session:
        await _session.close()

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="JewelryOverlay",
    description="Real-time jewelry try-on overlay from facial landmarks",
    version=settings.app.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "JewelryOverlay",
        "version": settings.app.version,
        "name": settings.app.name,
        "status": "running",
        "platform": settings.capture.platform.value,
        "detection_backend": settings.detection.backend,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - is the service ready to serve overlays?

    Returns 200 if capture is connected or a detection result exists.
    Returns 503 if not ready.
    """
    consumer = get_frame_consumer()
    session = get_session()

    capture_connected = consumer.connected if consumer else False
    result_available = session is not None and session.cell.read() is not None

    if capture_connected or result_available:
        return JSONResponse({
            "status": "ready",
            "capture_connected": capture_connected,
            "result_available": result_available,
        })
    return JSONResponse(
        {
            "status": "not_ready",
            "capture_connected": capture_connected,
            "result_available": result_available,
        },
        status_code=503,
    )


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    consumer = get_frame_consumer()
    session = get_session()

    capture_metrics = {}
    if consumer:
        capture_metrics = {
            "capture_connected": consumer.connected,
            **consumer.metrics.to_dict(),
        }

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "detection_backend": settings.detection.backend,
        "debug_overlay": settings.render.debug_overlay,
        "capture": capture_metrics,
        "session": session.metrics_dict() if session else {},
        "frames_composed": _compositor.frames_composed if _compositor else 0,
    })


@app.get("/overlay")
async def overlay(
    width: float = Query(..., allow_inf_nan=False, description="Viewport width"),
    height: float = Query(..., allow_inf_nan=False, description="Viewport height"),
    debug: Optional[bool] = Query(default=None, description="Override debug overlay"),
) -> JSONResponse:
    """Draw commands for one paint of the given viewport."""
    if get_session() is None:
        return JSONResponse({"error": "Session not started"}, status_code=503)

    output = _paint_output(Size(width, height), debug=debug)
    return JSONResponse(output.model_dump(mode="json"))


@app.get("/overlay.png")
async def overlay_png(
    width: int = Query(..., gt=0, le=4096, description="Viewport width"),
    height: int = Query(..., gt=0, le=4096, description="Viewport height"),
    debug: Optional[bool] = Query(default=None, description="Override debug overlay"),
) -> Response:
    """Current overlay rendered onto a black canvas, for visual inspection."""
    session = get_session()
    catalog = get_catalog()
    if session is None or catalog is None or _compositor is None:
        return JSONResponse({"error": "Session not started"}, status_code=503)

    viewport = Size(float(width), float(height))
    include_debug = settings.render.debug_overlay if debug is None else debug
    frame = session.paint(viewport, debug=include_debug)
    image = _compositor.compose(blank_canvas(viewport), frame, catalog)

    ok, encoded = cv2.imencode(".png", image)
    if not ok:
        return JSONResponse({"error": "PNG encoding failed"}, status_code=500)
    return Response(content=encoded.tobytes(), media_type="image/png")


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/overlay")
async def overlay_stream(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for real-time draw commands.

    The client sends {"width": ..., "height": ...} first and again on every
    resize; the server pushes an OverlayOutput every paint interval.
    """
    await websocket.accept()
    logger.info("Client connected to /ws/overlay")

    interval = settings.render.paint_interval_ms / 1000.0
    viewport: Optional[Size] = None

    try:
        while not _shutdown_flag:
            try:
                message = await asyncio.wait_for(websocket.receive_json(), timeout=interval)
                parsed = ViewportOut.model_validate(message)
                viewport = Size(parsed.width, parsed.height)
                logger.debug(f"Viewport set to {viewport}")
            except asyncio.TimeoutError:
                pass
            except ValidationError as e:
                logger.warning(f"Invalid viewport message: {e}")
                await websocket.send_json({"error": "expected {\"width\", \"height\"}"})
                continue

            if viewport is not None and get_session() is not None:
                output = _paint_output(viewport)
                await websocket.send_json(output.model_dump(mode="json"))

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/overlay")


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "jewelry_overlay.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
