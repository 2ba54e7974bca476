"""
Render Module
=============

Accessory asset loading and an OpenCV reference compositor for
OverlayFrame draw commands.
"""

from jewelry_overlay.render.assets import (
    AssetLoadError,
    load_accessory_image,
    load_catalog,
    placeholder_accessory,
)
from jewelry_overlay.render.compositor import (
    OverlayCompositor,
    blank_canvas,
    blend_bgra,
)


__all__ = [
    "AssetLoadError",
    "load_accessory_image",
    "load_catalog",
    "placeholder_accessory",
    "OverlayCompositor",
    "blank_canvas",
    "blend_bgra",
]
