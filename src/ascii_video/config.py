"""
ASCII Video Configuration
=========================

This module handles configuration loading for the ASCII video converter.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    ASCII_VIDEO_TARGET_WIDTH     -> conversion.target_width
    ASCII_VIDEO_FRAME_SKIP       -> conversion.frame_skip
    ASCII_VIDEO_NATIVE_FPS       -> conversion.native_frame_rate
    ASCII_VIDEO_CHARACTER_SET    -> conversion.character_set
    ASCII_VIDEO_PREVIEW_EVERY    -> conversion.preview_every
    ASCII_VIDEO_SOURCE_BACKEND   -> source.backend
    ASCII_VIDEO_MAX_FILE_SIZE_MB -> source.max_file_size_mb
    ASCII_VIDEO_MAX_FINISHED_JOBS -> jobs.max_finished
    ASCII_VIDEO_PORT             -> server.port
    ASCII_VIDEO_LOG_LEVEL        -> logging.level
    ASCII_VIDEO_LOG_FORMAT       -> logging.format
    PORT                         -> server.port (container platforms)

Example:
    from ascii_video.config import settings

    print(settings.conversion.target_width)
    print(settings.conversion.character_set)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Application identification configuration."""

    name: str = Field(default="ascii-video-converter", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class ConversionConfig(BaseModel):
    """Frame-to-ASCII conversion configuration."""

    target_width: int = Field(
        default=100,
        ge=1,
        le=400,
        description="Width of the character grid in cells",
    )
    frame_skip: int = Field(
        default=2,
        ge=1,
        description="Native frames advanced between two sampled instants",
    )
    native_frame_rate: float = Field(
        default=30.0,
        gt=0,
        description="Nominal source frame rate used for stepping and fps",
    )
    character_set: str = Field(
        default="simple",
        min_length=1,
        description="Preset name (simple, standard, extended) or a literal ramp",
    )
    preview_every: int = Field(
        default=10,
        ge=1,
        description="Emit a preview image every N processed frames",
    )
    preview_quality: int = Field(
        default=30,
        ge=1,
        le=100,
        description="JPEG quality of preview images",
    )
    preview_max_width: int = Field(
        default=320,
        ge=16,
        description="Previews are downscaled to at most this width in pixels",
    )


class SyntheticSourceConfig(BaseModel):
    """Synthetic source backend configuration."""

    width: int = Field(default=64, ge=1, description="Raster width in pixels")
    height: int = Field(default=48, ge=1, description="Raster height in pixels")
    duration: float = Field(default=2.0, gt=0, description="Duration in seconds")


class SourceConfig(BaseModel):
    """Video source configuration."""

    backend: str = Field(
        default="opencv",
        description="Source backend: 'opencv' or 'synthetic'",
    )
    max_file_size_mb: float = Field(
        default=10.0,
        gt=0,
        description="Maximum accepted upload size in megabytes",
    )
    allowed_extensions: List[str] = Field(
        default_factory=lambda: [".mp4"],
        description="Accepted upload file extensions",
    )
    work_dir: Optional[str] = Field(
        default=None,
        description="Directory for spooled uploads (None = system temp)",
    )
    synthetic: SyntheticSourceConfig = Field(default_factory=SyntheticSourceConfig)


class JobsConfig(BaseModel):
    """Job retention configuration."""

    max_finished: int = Field(
        default=16,
        ge=1,
        description="Finished jobs kept for retrieval before the oldest are evicted",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")
    status_interval_seconds: float = Field(
        default=0.25,
        gt=0,
        description="Push interval for the job status WebSocket",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the ASCII video converter.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    jobs: JobsConfig = Field(default_factory=JobsConfig)
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
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Conversion settings
    if env_width := os.environ.get("ASCII_VIDEO_TARGET_WIDTH"):
        config_data.setdefault("conversion", {})["target_width"] = int(env_width)
    if env_skip := os.environ.get("ASCII_VIDEO_FRAME_SKIP"):
        config_data.setdefault("conversion", {})["frame_skip"] = int(env_skip)
    if env_fps := os.environ.get("ASCII_VIDEO_NATIVE_FPS"):
        config_data.setdefault("conversion", {})["native_frame_rate"] = float(env_fps)
    if env_charset := os.environ.get("ASCII_VIDEO_CHARACTER_SET"):
        config_data.setdefault("conversion", {})["character_set"] = env_charset
    if env_preview := os.environ.get("ASCII_VIDEO_PREVIEW_EVERY"):
        config_data.setdefault("conversion", {})["preview_every"] = int(env_preview)

    # Source settings
    if env_backend := os.environ.get("ASCII_VIDEO_SOURCE_BACKEND"):
        config_data.setdefault("source", {})["backend"] = env_backend
    if env_size := os.environ.get("ASCII_VIDEO_MAX_FILE_SIZE_MB"):
        config_data.setdefault("source", {})["max_file_size_mb"] = float(env_size)

    # Job retention
    if env_finished := os.environ.get("ASCII_VIDEO_MAX_FINISHED_JOBS"):
        config_data.setdefault("jobs", {})["max_finished"] = int(env_finished)

    # Server settings (container platforms use PORT)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("ASCII_VIDEO_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("ASCII_VIDEO_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_log_format := os.environ.get("ASCII_VIDEO_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_log_format


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

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
