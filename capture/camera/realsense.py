"""Intel RealSense camera behind the capture camera interface."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Tuple

import pyrealsense2 as rs

from utils.error_tracker import (
    CameraConnectionError,
    CameraError,
    ErrorTracker,
    FrameTimeoutError,
    NoCameraError,
)
from utils.logger import DriverStderr, Logger, LoggerType
from utils.settings import StreamCfg, streams
from .base import CameraInterface, Intrinsics, PixelFormat, Stream

_RS_STREAMS = {Stream.COLOR: rs.stream.color, Stream.DEPTH: rs.stream.depth}

# Quality preset name -> D400 visual preset
DEPTH_PRESETS = {
    "best_quality": rs.rs400_visual_preset.high_accuracy,
    "high_density": rs.rs400_visual_preset.high_density,
    "medium_density": rs.rs400_visual_preset.medium_density,
    "default": rs.rs400_visual_preset.default,
}

# Poll period used when the caller asked for an unbounded wait
_POLL_MS = 1000


@contextmanager
def driver_call(function: str, *args: object) -> Iterator[None]:
    """Re-raise any librealsense failure as :class:`CameraError`."""
    try:
        yield
    except CameraError:
        raise
    except RuntimeError as e:
        raise CameraError(str(e), function, args) from e


def list_devices() -> list[dict[str, str]]:
    """Return name and serial of every connected RealSense device."""
    with driver_call("rs.context.query_devices"):
        devices = rs.context().query_devices()
        return [
            {
                "name": dev.get_info(rs.camera_info.name),
                "serial": dev.get_info(rs.camera_info.serial_number),
            }
            for dev in devices
        ]


class RealSenseCamera(CameraInterface):
    """
    RealSense device streaming Z16 depth and BGR8 color.
    Depth uses the configured quality preset, color uses the configured
    resolution and frame rate.
    """

    def __init__(
        self, cfg: StreamCfg | None = None, logger: LoggerType | None = None
    ) -> None:
        super().__init__()
        self.cfg = cfg or streams
        if self.cfg.depth_preset not in DEPTH_PRESETS:
            raise ValueError(
                f"Unknown depth preset {self.cfg.depth_preset!r}, "
                f"expected one of {sorted(DEPTH_PRESETS)}"
            )
        self.logger = logger or Logger.get_logger("capture.realsense")
        self.pipeline = rs.pipeline()
        self.profile: rs.pipeline_profile | None = None
        self._frames: rs.composite_frame | None = None
        self._name = "RealSense"
        self.started = False

    @property
    def name(self) -> str:
        return self._name

    def _build_config(self) -> rs.config:
        cfg = self.cfg
        config = rs.config()
        config.enable_stream(rs.stream.depth)
        config.enable_stream(
            rs.stream.color,
            cfg.color_width,
            cfg.color_height,
            rs.format.bgr8,
            cfg.color_fps,
        )
        return config

    def start(self) -> None:
        """Pick the first device, enable both streams and start capture."""
        if self.started:
            return
        devices = list_devices()
        if not devices:
            raise NoCameraError(
                "No RealSense cameras detected", "rs.context.query_devices"
            )
        self._name = f"{devices[0]['name']} SN:{devices[0]['serial']}"
        config = self._build_config()
        config.enable_device(devices[0]["serial"])
        try:
            with DriverStderr(self.logger):
                self.profile = self.pipeline.start(config)
        except RuntimeError as e:
            self.logger.error(f"Failed to start RealSense pipeline: {e}")
            raise CameraConnectionError(
                str(e), "rs.pipeline.start", (devices[0]["serial"],)
            ) from e
        # Streaming from here on: any later failure must stop the pipeline
        self.started = True
        ErrorTracker.register_cleanup(self.stop)
        try:
            self._apply_depth_preset()
            self.logger.info(f"Device: {self._name}")
            for stream in Stream:
                intr = self.get_stream_intrinsics(stream)
                self.logger.info(f"{stream.value} stream {intr.width}x{intr.height}")
        except CameraError:
            self.stop()
            raise

    def _apply_depth_preset(self) -> None:
        assert self.profile is not None
        preset = DEPTH_PRESETS[self.cfg.depth_preset]
        with driver_call("rs.sensor.set_option", "visual_preset", self.cfg.depth_preset):
            sensor = self.profile.get_device().first_depth_sensor()
            if not sensor.supports(rs.option.visual_preset):
                self.logger.warning("Depth sensor has no visual presets")
                return
            sensor.set_option(rs.option.visual_preset, float(int(preset)))
        self.logger.info(f"Depth preset: {self.cfg.depth_preset}")

    def stop(self) -> None:
        """Stop streaming and release the last frame set."""
        if self.started:
            self._frames = None
            self.pipeline.stop()
            self.started = False
            ErrorTracker.unregister_cleanup(self.stop)

    def get_stream_intrinsics(self, stream: Stream) -> Intrinsics:
        if self.profile is None:
            raise CameraError(
                "Camera not started", "get_stream_intrinsics", (stream.value,)
            )
        with driver_call("rs.video_stream_profile.get_intrinsics", stream.value):
            video = self.profile.get_stream(_RS_STREAMS[stream]).as_video_stream_profile()
            intr = video.get_intrinsics()
        return Intrinsics(intr.width, intr.height)

    def _wait(self, timeout_ms: int | None) -> None:
        if not self.started:
            raise CameraError("Camera not started", "wait_all_streams")
        # Drop the previous frame set so librealsense can reuse its buffers
        self._frames = None
        poll = _POLL_MS if timeout_ms is None else timeout_ms
        with driver_call("rs.pipeline.try_wait_for_frames", poll):
            while True:
                ok, frames = self.pipeline.try_wait_for_frames(poll)
                if ok:
                    self._frames = frames
                    return
                if timeout_ms is not None:
                    raise FrameTimeoutError(
                        f"Frame didn't arrive within {timeout_ms} ms",
                        "rs.pipeline.try_wait_for_frames",
                        (timeout_ms,),
                    )
                self.logger.debug(f"No frame set within {poll} ms, still waiting")

    def _pixels(self, stream: Stream) -> Tuple[Any, PixelFormat, int, int, int]:
        if self._frames is None:
            raise CameraError("No frame set available", "get_image_pixels", (stream.value,))
        with driver_call("rs.frame.get_data", stream.value):
            if stream is Stream.COLOR:
                frame = self._frames.get_color_frame()
                fmt = PixelFormat.BGR8
            else:
                frame = self._frames.get_depth_frame()
                fmt = PixelFormat.Z16
            if not frame:
                raise CameraError("Stream missing from frame set", "get_image_pixels", (stream.value,))
            return (
                frame.get_data(),
                fmt,
                frame.get_width(),
                frame.get_height(),
                frame.get_stride_in_bytes(),
            )
