"""
Overlay Compositor
==================

Reference renderer for OverlayFrame draw commands, using OpenCV.

Every call repaints from the given canvas: the input is never modified
and nothing is carried over between calls.
"""

import logging
from typing import Tuple

import cv2
import numpy as np

from jewelry_overlay.models.placement import (
    AccessoryCatalog,
    AccessoryKind,
    OverlayFrame,
    PlacementRect,
    Size,
)


logger = logging.getLogger(__name__)


# BGR
BOX_COLOR: Tuple[int, int, int] = (0, 0, 255)
NECKLACE_COLOR: Tuple[int, int, int] = (0, 255, 0)
EARRING_COLOR: Tuple[int, int, int] = (0, 165, 255)
MARKER_COLOR: Tuple[int, int, int] = (255, 0, 0)


def blank_canvas(viewport: Size) -> np.ndarray:
    """Black BGR canvas matching a viewport."""
    width = max(0, int(round(viewport.width)))
    height = max(0, int(round(viewport.height)))
    return np.zeros((height, width, 3), dtype=np.uint8)


def blend_bgra(canvas: np.ndarray, overlay: np.ndarray, x: int, y: int) -> None:
    """
    Alpha-blend a BGRA image onto a BGR canvas in place.

    The overlay is clipped at the canvas edges; a fully off-canvas overlay
    is a no-op.
    """
    canvas_h, canvas_w = canvas.shape[:2]
    overlay_h, overlay_w = overlay.shape[:2]

    x1, y1 = max(0, x), max(0, y)
    x2, y2 = min(canvas_w, x + overlay_w), min(canvas_h, y + overlay_h)
    if x2 <= x1 or y2 <= y1:
        return

    src = overlay[y1 - y:y2 - y, x1 - x:x2 - x]
    roi = canvas[y1:y2, x1:x2]

    alpha = src[:, :, 3:4].astype(np.float32) / 255.0
    blended = src[:, :, :3].astype(np.float32) * alpha + roi.astype(np.float32) * (1.0 - alpha)
    canvas[y1:y2, x1:x2] = blended.astype(np.uint8)


class OverlayCompositor:
    """
    Draws accessory placements and debug primitives onto an image.

    Example:
        compositor = OverlayCompositor()
        image = compositor.compose(camera_bgr, overlay_frame, catalog)
    """

    def __init__(self, box_thickness: int = 2) -> None:
        self.box_thickness = box_thickness
        self.frames_composed: int = 0

    def compose(
        self,
        canvas: np.ndarray,
        frame: OverlayFrame,
        catalog: AccessoryCatalog,
    ) -> np.ndarray:
        """
        Render one OverlayFrame.

        Args:
            canvas: BGR image of shape (H, W, 3), left untouched
            frame: Draw commands for this paint
            catalog: Accessory images

        Returns:
            New BGR image with accessories and debug primitives drawn
        """
        output = canvas.copy()
        debug = bool(frame.debug_boxes or frame.debug_markers)

        for rect in frame.placements:
            self._blit(output, rect, catalog)
            if debug:
                color = NECKLACE_COLOR if rect.kind is AccessoryKind.NECKLACE else EARRING_COLOR
                self._outline(output, rect.x, rect.y, rect.x + rect.width, rect.y + rect.height, color)

        for box in frame.debug_boxes:
            self._outline(output, box.left, box.top, box.right, box.bottom, BOX_COLOR)

        for marker in frame.debug_markers:
            cv2.circle(
                output,
                (int(round(marker.x)), int(round(marker.y))),
                max(1, int(round(marker.radius))),
                MARKER_COLOR,
                thickness=-1,
            )

        self.frames_composed += 1
        return output

    def _blit(self, canvas: np.ndarray, rect: PlacementRect, catalog: AccessoryCatalog) -> None:
        """Rect-to-rect blit of the accessory image."""
        image = catalog.for_kind(rect.kind)
        if image.pixels is None:
            logger.debug(f"No pixels for asset '{rect.asset}', skipping blit")
            return

        x = int(round(rect.x))
        y = int(round(rect.y))
        width = int(round(rect.width))
        height = int(round(rect.height))
        if width <= 0 or height <= 0:
            return

        resized = cv2.resize(image.pixels, (width, height), interpolation=cv2.INTER_AREA)
        blend_bgra(canvas, resized, x, y)

    def _outline(
        self,
        canvas: np.ndarray,
        left: float,
        top: float,
        right: float,
        bottom: float,
        color: Tuple[int, int, int],
    ) -> None:
        cv2.rectangle(
            canvas,
            (int(round(left)), int(round(top))),
            (int(round(right)), int(round(bottom))),
            color,
            thickness=self.box_thickness,
        )
