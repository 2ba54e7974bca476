"""
Jewelry Overlay Configuration
=============================

This module handles configuration loading for the overlay service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    JEWELRY_CAPTURE_URL       -> capture.url
    JEWELRY_PLATFORM          -> capture.platform
    JEWELRY_DETECTION_BACKEND -> detection.backend
    JEWELRY_MODEL_PATH        -> detection.model_path
    JEWELRY_NECKLACE_PATH     -> assets.necklace_path
    JEWELRY_EARRING_PATH      -> assets.earring_path
    JEWELRY_DEBUG_OVERLAY     -> render.debug_overlay
    JEWELRY_LOG_LEVEL         -> logging.level
    PORT                      -> server.port
    JEWELRY_PORT              -> server.port (when PORT is unset)

Example:
    from jewelry_overlay.config import settings

    print(settings.capture.url)
    print(settings.placement.necklace_width_ratio)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from jewelry_overlay.models.frame import PlatformFamily


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Service identification."""

    name: str = Field(default="jewelry-overlay", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class CaptureConfig(BaseModel):
    """Capture bridge connection configuration."""

    url: str = Field(
        default="ws://localhost:8765/ws/camera",
        description="WebSocket URL of the capture bridge",
    )
    platform: PlatformFamily = Field(
        default=PlatformFamily.ANDROID,
        description="Platform family of the capture device",
    )
    reconnect_backoff_ms: int = Field(
        default=500,
        ge=100,
        description="Backoff in milliseconds between reconnect attempts",
    )
    max_reconnect_attempts: int = Field(
        default=0,
        ge=0,
        description="Maximum reconnection attempts (0 = unlimited)",
    )


class MockDetectionConfig(BaseModel):
    """Mock detector configuration."""

    face_count: int = Field(default=1, ge=0, description="Faces per frame")
    sway_period: int = Field(default=120, ge=1, description="Frames per sway cycle")


class DetectionConfig(BaseModel):
    """Landmark detection backend configuration."""

    backend: str = Field(
        default="mock",
        description="Detection backend: 'mock' or 'mediapipe'",
    )
    max_faces: int = Field(default=1, ge=1, description="Maximum faces per frame")
    model_path: str = Field(
        default="./models/face_landmarker.task",
        description="Path to the MediaPipe FaceLandmarker model bundle",
    )
    min_detection_confidence: float = Field(default=0.5, ge=0, le=1.0)
    min_tracking_confidence: float = Field(default=0.5, ge=0, le=1.0)
    mock: MockDetectionConfig = Field(default_factory=MockDetectionConfig)


class PlacementConfig(BaseModel):
    """Accessory placement proportions."""

    necklace_width_ratio: float = Field(
        default=0.9,
        gt=0,
        description="Necklace width as a fraction of face box width",
    )
    necklace_aspect_ratio: float = Field(
        default=0.4,
        gt=0,
        description="Necklace height / width",
    )
    necklace_gap: float = Field(
        default=10.0,
        description="Gap between face box bottom and necklace top (viewport units)",
    )
    earring_size_ratio: float = Field(
        default=0.2,
        gt=0,
        description="Earring side as a fraction of face box width",
    )


class AssetsConfig(BaseModel):
    """Accessory image paths (empty = generated placeholder)."""

    necklace_path: str = Field(default="", description="Necklace image path")
    earring_path: str = Field(default="", description="Earring image path")


class RenderConfig(BaseModel):
    """Paint configuration."""

    debug_overlay: bool = Field(
        default=False,
        description="Emit face boxes and landmark markers",
    )
    landmark_marker_radius: float = Field(default=3.0, gt=0)
    paint_interval_ms: int = Field(
        default=33,
        ge=1,
        description="Push interval of the /ws/overlay stream",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the overlay service.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
    assets: AssetsConfig = Field(default_factory=AssetsConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Capture
    if env_url := os.environ.get("JEWELRY_CAPTURE_URL"):
        config_data.setdefault("capture", {})["url"] = env_url
    if env_platform := os.environ.get("JEWELRY_PLATFORM"):
        config_data.setdefault("capture", {})["platform"] = env_platform.strip().lower()

    # Detection
    if env_backend := os.environ.get("JEWELRY_DETECTION_BACKEND"):
        config_data.setdefault("detection", {})["backend"] = env_backend
    if env_model := os.environ.get("JEWELRY_MODEL_PATH"):
        config_data.setdefault("detection", {})["model_path"] = env_model

    # Assets
    if env_necklace := os.environ.get("JEWELRY_NECKLACE_PATH"):
        config_data.setdefault("assets", {})["necklace_path"] = env_necklace
    if env_earring := os.environ.get("JEWELRY_EARRING_PATH"):
        config_data.setdefault("assets", {})["earring_path"] = env_earring

    # Render
    if env_debug := os.environ.get("JEWELRY_DEBUG_OVERLAY"):
        config_data.setdefault("render", {})["debug_overlay"] = _parse_bool(env_debug)

    # Server
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("JEWELRY_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging
    if env_log := os.environ.get("JEWELRY_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

settings = load_config()
setup_logging(settings)
