"""Shared helper modules used across the project.

The :mod:`utils` package contains lightweight helpers for logging, settings,
YAML configuration, error tracking, CLI dispatching and frame file I/O.
"""

from .logger import Logger, LoggerType
from .settings import (
    DEPTH_DOMAIN,
    DEPTH_EXT,
    IMAGE_EXT,
    CaptureCfg,
    LoggingCfg,
    StreamCfg,
    ViewerCfg,
    capture,
    logging,
    paths,
    streams,
    viewer,
)
from .error_tracker import (
    CameraConnectionError,
    CameraError,
    ErrorTracker,
    FrameTimeoutError,
    HistogramOverflowError,
    ImageFormatError,
    NoCameraError,
    StaleFrameError,
)
from .io import (
    frame_paths,
    list_recorded_frames,
    load_npy,
    read_image,
    save_npy,
    write_image,
)

__all__ = [
    "Logger",
    "LoggerType",
    "DEPTH_DOMAIN",
    "DEPTH_EXT",
    "IMAGE_EXT",
    "CaptureCfg",
    "LoggingCfg",
    "StreamCfg",
    "ViewerCfg",
    "capture",
    "logging",
    "paths",
    "streams",
    "viewer",
    "CameraConnectionError",
    "CameraError",
    "ErrorTracker",
    "FrameTimeoutError",
    "HistogramOverflowError",
    "ImageFormatError",
    "NoCameraError",
    "StaleFrameError",
    "frame_paths",
    "list_recorded_frames",
    "load_npy",
    "read_image",
    "save_npy",
    "write_image",
]
