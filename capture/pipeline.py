"""One acquisition cycle: wait, copy, equalize, colorize."""

from __future__ import annotations

import time
from dataclasses import dataclass

import numpy as np

from utils.error_tracker import ImageFormatError
from utils.logger import Logger, LoggerType
from utils.settings import CaptureCfg, capture
from .camera.base import CameraInterface, Stream
from .colorize import colorize_depth
from .histogram import build_histogram
from .image_buffer import DisplayImage


@dataclass(frozen=True, eq=False)
class CycleResult:
    """Display images produced by one cycle."""

    color: DisplayImage
    depth: DisplayImage
    index: int = 0
    duration: float = 0.0
    raw_depth: np.ndarray | None = None


def capture_cycle(
    camera: CameraInterface, timeout_ms: int | None = None, index: int = 0
) -> CycleResult:
    """Run one acquisition cycle against ``camera``.

    Intrinsics are re-read every call and every camera buffer is copied
    before returning, so the result stays valid after the next wait.
    Camera errors propagate unchanged.
    """
    start = time.perf_counter()
    camera.wait_all_streams(timeout_ms)

    intr = camera.get_stream_intrinsics(Stream.COLOR)
    color = DisplayImage.from_raw_frame(camera.get_image_pixels(Stream.COLOR), intr)

    intr = camera.get_stream_intrinsics(Stream.DEPTH)
    depth_frame = camera.get_image_pixels(Stream.DEPTH)
    if (depth_frame.width, depth_frame.height) != (intr.width, intr.height):
        raise ImageFormatError(
            f"depth frame is {depth_frame.width}x{depth_frame.height}, "
            f"stream reports {intr.width}x{intr.height}"
        )
    depth_pixels = depth_frame.copy_array()
    depth_pixels.flags.writeable = False

    histogram = build_histogram(depth_pixels)
    depth = DisplayImage.from_synthesized(colorize_depth(depth_pixels, histogram))
    return CycleResult(
        color=color,
        depth=depth,
        index=index,
        duration=time.perf_counter() - start,
        raw_depth=depth_pixels,
    )


class CapturePipeline:
    """Callable cycle bound to a camera, handed to the frame pacer."""

    def __init__(
        self,
        camera: CameraInterface,
        cfg: CaptureCfg | None = None,
        logger: LoggerType | None = None,
    ) -> None:
        self.camera = camera
        self.cfg = cfg or capture
        self.logger = logger or Logger.get_logger("capture.pipeline")
        self.cycles = 0

    def __call__(self) -> CycleResult:
        result = capture_cycle(
            self.camera, timeout_ms=self.cfg.wait_timeout_ms, index=self.cycles
        )
        self.cycles += 1
        self.logger.debug(
            f"Cycle {result.index}: color {result.color.width}x{result.color.height}, "
            f"depth {result.depth.width}x{result.depth.height} "
            f"in {result.duration * 1000:.1f} ms"
        )
        return result
