"""
Overlay Output Models
=====================

This module defines the JSON output contract served to renderers.

An OverlayOutput is the serialised form of one OverlayFrame: everything a
remote renderer needs to draw the accessories for one paint.

Output Contract:
    {
        "frame_id": 1234,
        "viewport": {"width": 1080, "height": 1920},
        "transform": {"scale": 1.6875, "offset_x": 0.0, "offset_y": 555.0},
        "placements": [
            {
                "kind": "necklace",
                "asset": "necklace",
                "x": 230.0, "y": 520.0, "width": 360.0, "height": 144.0,
                "source_width": 800, "source_height": 320
            }
        ],
        "debug": {
            "boxes": [{"left": 210, "top": 110, "right": 610, "bottom": 510}],
            "markers": [{"x": 410.0, "y": 510.0, "radius": 3.0}]
        },
        "faces_rendered": 1,
        "faces_rejected": 0
    }

Design Rules:
    - Every output is a full repaint; there is no partial invalidation
    - `debug` is null unless debug overlay is enabled
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from jewelry_overlay.models.placement import AccessoryKind, OverlayFrame


class ViewportOut(BaseModel):
    """Destination surface size."""

    width: float = Field(..., allow_inf_nan=False, description="Viewport width")
    height: float = Field(..., allow_inf_nan=False, description="Viewport height")


class TransformOut(BaseModel):
    """Frame-to-viewport transform used for this paint."""

    scale: float = Field(..., ge=0.0, description="Uniform scale factor")
    offset_x: float = Field(..., description="Horizontal padding")
    offset_y: float = Field(..., description="Vertical padding")


class PlacementOut(BaseModel):
    """
    One accessory blit.

    Attributes:
        kind: Accessory instance type
        asset: Asset name to draw
        x, y, width, height: Destination rectangle in viewport space
        source_width, source_height: Natural size of the asset image
    """

    kind: AccessoryKind
    asset: str
    x: float
    y: float
    width: float
    height: float
    source_width: int = Field(..., gt=0)
    source_height: int = Field(..., gt=0)


class BoxOut(BaseModel):
    """Rectangle outline given by its edges."""

    left: float
    top: float
    right: float
    bottom: float


class MarkerOut(BaseModel):
    """Landmark marker."""

    x: float
    y: float
    radius: float = Field(..., ge=0.0)


class DebugOut(BaseModel):
    """Debug primitives for visual inspection."""

    boxes: List[BoxOut] = Field(default_factory=list)
    markers: List[MarkerOut] = Field(default_factory=list)


class OverlayOutput(BaseModel):
    """
    Complete overlay payload for one paint.

    Attributes:
        frame_id: Capture frame the landmarks came from (-1 if none yet)
        viewport: Destination surface size
        transform: Transform used for this paint
        placements: Accessory blits in draw order
        debug: Debug primitives (None when disabled)
        faces_rendered: Faces that produced placements
        faces_rejected: Faces skipped due to invalid landmark data
    """

    frame_id: int = Field(default=-1)
    viewport: ViewportOut
    transform: TransformOut
    placements: List[PlacementOut] = Field(default_factory=list)
    debug: Optional[DebugOut] = Field(default=None)
    faces_rendered: int = Field(default=0, ge=0)
    faces_rejected: int = Field(default=0, ge=0)

    @classmethod
    def from_frame(cls, frame: OverlayFrame, include_debug: bool = False) -> "OverlayOutput":
        """Serialise an OverlayFrame."""
        debug: Optional[DebugOut] = None
        if include_debug:
            debug = DebugOut(
                boxes=[
                    BoxOut(left=b.left, top=b.top, right=b.right, bottom=b.bottom)
                    for b in frame.debug_boxes
                ],
                markers=[
                    MarkerOut(x=m.x, y=m.y, radius=m.radius)
                    for m in frame.debug_markers
                ],
            )

        return cls(
            frame_id=frame.frame_id,
            viewport=ViewportOut(width=frame.viewport.width, height=frame.viewport.height),
            transform=TransformOut(
                scale=frame.transform.scale,
                offset_x=frame.transform.offset_x,
                offset_y=frame.transform.offset_y,
            ),
            placements=[
                PlacementOut(
                    kind=p.kind,
                    asset=p.asset,
                    x=p.x,
                    y=p.y,
                    width=p.width,
                    height=p.height,
                    source_width=p.source_width,
                    source_height=p.source_height,
                )
                for p in frame.placements
            ],
            debug=debug,
            faces_rendered=frame.faces_rendered,
            faces_rejected=frame.faces_rejected,
        )
