"""Replay recorded frame pairs from disk."""

from __future__ import annotations

from pathlib import Path

from utils.error_tracker import CameraConnectionError, CameraError
from utils.io import frame_paths, list_recorded_frames, load_npy, read_image
from utils.logger import Logger, LoggerType
from .memory import FramePair, SlotCamera


class FileCamera(SlotCamera):
    """Camera reading ``color_XXXX.png`` / ``depth_XXXX.npy`` pairs.

    The directory layout is the one written by the ``snapshot`` command.
    Frames are loaded lazily, one pair per wait, looping at the end when
    ``loop`` is set.
    """

    def __init__(
        self,
        directory: str | Path,
        loop: bool = True,
        row_padding: int = 0,
        logger: LoggerType | None = None,
    ) -> None:
        self.directory = Path(directory)
        super().__init__(name=f"Replay {self.directory.name}", row_padding=row_padding)
        self.loop = loop
        self.logger = logger or Logger.get_logger("capture.replay")
        self.indices: list[int] = []
        self._cursor = 0

    def start(self) -> None:
        if not self.directory.is_dir():
            raise CameraConnectionError(
                f"Replay directory not found: {self.directory}",
                "FileCamera.start",
                (str(self.directory),),
            )
        self.indices = list_recorded_frames(self.directory)
        if not self.indices:
            raise CameraConnectionError(
                f"No recorded frames in {self.directory}",
                "FileCamera.start",
                (str(self.directory),),
            )
        self._cursor = 0
        self.logger.info(f"Replaying {len(self.indices)} frames from {self.directory}")
        super().start()

    def _next_pair(self) -> FramePair:
        if not self.started:
            raise CameraError("Camera not started", "wait_all_streams")
        if self._cursor >= len(self.indices):
            if not self.loop:
                raise CameraError(
                    "Replay exhausted", "wait_all_streams", (str(self.directory),)
                )
            self._cursor = 0
        index = self.indices[self._cursor]
        self._cursor += 1
        color_path, depth_path, _ = frame_paths(self.directory, index)
        color = read_image(color_path)
        if color is None:
            raise CameraError(
                f"Unreadable color frame {color_path}", "read_image", (str(color_path),)
            )
        depth = load_npy(depth_path)
        self.logger.debug(f"Replay frame {index}")
        return color, depth
