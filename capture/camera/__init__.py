"""Camera boundary of the capture pipeline.

:class:`CameraInterface` is the synchronized multi-stream camera consumed by
the pipeline.  :class:`StaticCamera` and :class:`FileCamera` serve frames
from memory and from recorded directories; the RealSense driver lives in
:mod:`capture.camera.realsense` and is imported on demand so the rest of the
package works without librealsense.
"""

from .base import CameraInterface, Intrinsics, PixelFormat, RawFrame, Stream
from .memory import SlotCamera, StaticCamera
from .replay import FileCamera

__all__ = [
    "CameraInterface",
    "Intrinsics",
    "PixelFormat",
    "RawFrame",
    "Stream",
    "SlotCamera",
    "StaticCamera",
    "FileCamera",
]
