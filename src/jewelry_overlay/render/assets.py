"""
Accessory Assets
================

Loads accessory images once at startup.

Images are read with OpenCV and normalised to BGRA so the compositor can
alpha-blend every asset the same way, whatever channel layout the file had.

Design Rules:
    - Loaded once, read-only afterwards
    - Missing or undecodable files fail fast with AssetLoadError
    - No path configured means a generated placeholder (logged)
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import cv2
import numpy as np

from jewelry_overlay.models.placement import AccessoryCatalog, AccessoryImage


logger = logging.getLogger(__name__)


class AssetLoadError(Exception):
    """Raised when an accessory image cannot be loaded."""
    pass


def to_bgra(image: np.ndarray) -> np.ndarray:
    """
    Normalise a decoded image to 4-channel BGRA.

    Grayscale and BGR inputs become fully opaque.

    Raises:
        AssetLoadError: If the channel layout is not recognised
    """
    if image.ndim == 2 or (image.ndim == 3 and image.shape[2] == 1):
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    if image.ndim == 3 and image.shape[2] == 4:
        return image.copy()
    raise AssetLoadError(f"Unsupported image shape {image.shape}")


def load_accessory_image(path: str, name: str) -> AccessoryImage:
    """
    Load one accessory image from disk.

    Args:
        path: Image file path (PNG with alpha recommended)
        name: Asset identifier

    Returns:
        AccessoryImage with BGRA pixels

    Raises:
        AssetLoadError: If the file is missing or cannot be decoded
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise AssetLoadError(f"Accessory image not found: {path}")

    image = cv2.imread(str(file_path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise AssetLoadError(f"Failed to decode accessory image: {path}")

    if image.dtype != np.uint8:
        image = cv2.convertScaleAbs(image, alpha=255.0 / max(1, int(image.max())))

    pixels = to_bgra(image)
    height, width = pixels.shape[:2]

    logger.info(f"Loaded accessory '{name}': {width}x{height} from {path}")
    return AccessoryImage(name=name, width=width, height=height, pixels=pixels)


def placeholder_accessory(
    name: str,
    size: Tuple[int, int],
    color: Tuple[int, int, int],
) -> AccessoryImage:
    """
    Generate a simple translucent accessory image.

    Args:
        name: Asset identifier
        size: (width, height) in pixels
        color: BGR fill colour

    Returns:
        AccessoryImage with an opaque ellipse on a transparent background
    """
    width, height = size
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    cv2.ellipse(
        pixels,
        (width // 2, height // 2),
        (max(1, width // 2 - 1), max(1, height // 2 - 1)),
        0, 0, 360,
        (*color, 255),
        thickness=-1,
    )
    return AccessoryImage(name=name, width=width, height=height, pixels=pixels)


def load_catalog(
    necklace_path: Optional[str],
    earring_path: Optional[str],
) -> AccessoryCatalog:
    """
    Load the necklace and earring images.

    An empty path yields a placeholder image so the service can run
    without artwork.

    Raises:
        AssetLoadError: If a configured file cannot be loaded
    """
    if necklace_path:
        necklace = load_accessory_image(necklace_path, "necklace")
    else:
        logger.warning("No necklace image configured, using placeholder")
        necklace = placeholder_accessory("necklace", (400, 160), (0, 215, 255))

    if earring_path:
        earring = load_accessory_image(earring_path, "earring")
    else:
        logger.warning("No earring image configured, using placeholder")
        earring = placeholder_accessory("earring", (64, 64), (0, 215, 255))

    return AccessoryCatalog(necklace=necklace, earring=earring)
