"""Depth/color capture pipeline.

Frames are acquired from a :class:`~capture.camera.CameraInterface`, the
depth stream is histogram-equalized into a blue-to-red image and both
streams are returned as stride-exact :class:`DisplayImage` buffers.  The
:class:`FramePacer` drives cycles at a bounded rate.
"""

from .camera import (
    CameraInterface,
    FileCamera,
    Intrinsics,
    PixelFormat,
    RawFrame,
    StaticCamera,
    Stream,
)
from .colorize import SENTINEL, ColorPixel, colorize_depth, colorize_sample, equalize
from .histogram import build_histogram, frequency_histogram, valid_sample_count
from .image_buffer import DisplayImage, compose_side_by_side
from .pacer import FrameMailbox, FramePacer, PacerState
from .pipeline import CapturePipeline, CycleResult, capture_cycle

__all__ = [
    "CameraInterface",
    "FileCamera",
    "Intrinsics",
    "PixelFormat",
    "RawFrame",
    "StaticCamera",
    "Stream",
    "SENTINEL",
    "ColorPixel",
    "colorize_depth",
    "colorize_sample",
    "equalize",
    "build_histogram",
    "frequency_histogram",
    "valid_sample_count",
    "DisplayImage",
    "compose_side_by_side",
    "FrameMailbox",
    "FramePacer",
    "PacerState",
    "CapturePipeline",
    "CycleResult",
    "capture_cycle",
]
