"""Camera boundary consumed by the capture pipeline.

A camera owns one buffer slot per stream that is overwritten on every
:meth:`CameraInterface.wait_all_streams` call.  Pixel data is handed out as
a :class:`RawFrame`, a borrowed view whose only accessors are copies, and
which refuses to be read once the camera has moved on to the next frame set.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple

import numpy as np

from utils.error_tracker import CameraError, ImageFormatError, StaleFrameError


class Stream(Enum):
    COLOR = "color"
    DEPTH = "depth"


class PixelFormat(Enum):
    """Pixel layouts produced by the camera."""

    BGR8 = "bgr8"
    Z16 = "z16"

    @property
    def bytes_per_pixel(self) -> int:
        return 3 if self is PixelFormat.BGR8 else 2

    @property
    def dtype(self) -> np.dtype:
        # Z16 is little-endian on every supported device
        return np.dtype(np.uint8) if self is PixelFormat.BGR8 else np.dtype("<u2")


@dataclass(frozen=True)
class Intrinsics:
    """Stream geometry in pixels."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ImageFormatError(
                f"Invalid stream size {self.width}x{self.height}"
            )

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


class RawFrame:
    """Borrowed view of a camera-owned pixel buffer.

    Valid only until the owning camera's next ``wait_all_streams()``.
    """

    __slots__ = (
        "_camera",
        "_generation",
        "_buffer",
        "stream",
        "format",
        "width",
        "height",
        "stride",
    )

    def __init__(
        self,
        camera: "CameraInterface",
        generation: int,
        buffer: Any,
        stream: Stream,
        fmt: PixelFormat,
        width: int,
        height: int,
        stride: int,
    ) -> None:
        row_bytes = width * fmt.bytes_per_pixel
        if stride < row_bytes:
            raise ImageFormatError(
                f"{stream.value}: stride {stride} shorter than row ({row_bytes} bytes)"
            )
        self._camera = camera
        self._generation = generation
        self._buffer = buffer
        self.stream = stream
        self.format = fmt
        self.width = width
        self.height = height
        self.stride = stride

    def __repr__(self) -> str:
        return (
            f"RawFrame({self.stream.value}, {self.format.value}, "
            f"{self.width}x{self.height}, stride={self.stride}, valid={self.valid})"
        )

    @property
    def valid(self) -> bool:
        """``False`` once the camera has waited for a newer frame set."""
        return self._camera.generation == self._generation

    @property
    def row_bytes(self) -> int:
        return self.width * self.format.bytes_per_pixel

    def _rows(self) -> np.ndarray:
        if not self.valid:
            raise StaleFrameError(
                f"{self.stream.value} frame from generation {self._generation} "
                f"read after generation {self._camera.generation} was acquired"
            )
        flat = np.frombuffer(self._buffer, dtype=np.uint8)
        # The last row may omit its padding
        needed = self.stride * (self.height - 1) + self.row_bytes
        if flat.size < needed:
            raise ImageFormatError(
                f"{self.stream.value}: buffer holds {flat.size} bytes, "
                f"{needed} needed for {self.width}x{self.height} stride {self.stride}"
            )
        return np.lib.stride_tricks.as_strided(
            flat,
            shape=(self.height, self.row_bytes),
            strides=(self.stride, 1),
            writeable=False,
        )

    def copy_bytes(self) -> bytes:
        """Copy the pixels out with row stride exactly ``row_bytes``."""
        return np.ascontiguousarray(self._rows()).tobytes()

    def copy_array(self) -> np.ndarray:
        """Copy the pixels into a fresh array.

        ``(height, width, 3)`` uint8 for BGR8, ``(height, width)`` uint16 for Z16.
        """
        rows = np.array(self._rows(), dtype=np.uint8, copy=True, order="C")
        if self.format is PixelFormat.BGR8:
            return rows.reshape(self.height, self.width, 3)
        depth = rows.view(self.format.dtype).reshape(self.height, self.width)
        return depth.astype(np.uint16, copy=False)


class CameraInterface(ABC):
    """Synchronized multi-stream camera."""

    def __init__(self) -> None:
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of ``wait_all_streams()`` calls made so far."""
        return self._generation

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable device name."""

    def start(self) -> None:
        """Start streaming."""

    def stop(self) -> None:
        """Stop streaming."""

    def __enter__(self) -> "CameraInterface":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    @abstractmethod
    def get_stream_intrinsics(self, stream: Stream) -> Intrinsics:
        """Return the current geometry of ``stream``."""

    def wait_all_streams(self, timeout_ms: int | None = None) -> None:
        """Block until a new synchronized frame set is available.

        Every :class:`RawFrame` handed out before this call becomes stale,
        even if the wait itself fails.
        """
        self._generation += 1
        self._wait(timeout_ms)

    def get_image_pixels(self, stream: Stream) -> RawFrame:
        """Borrow the current pixels of ``stream``."""
        if self._generation == 0:
            raise CameraError(
                "No frame set acquired yet", "get_image_pixels", (stream.value,)
            )
        buffer, fmt, width, height, stride = self._pixels(stream)
        return RawFrame(
            self, self._generation, buffer, stream, fmt, width, height, stride
        )

    @abstractmethod
    def _wait(self, timeout_ms: int | None) -> None:
        """Device specific blocking wait."""

    @abstractmethod
    def _pixels(self, stream: Stream) -> Tuple[Any, PixelFormat, int, int, int]:
        """Return ``(buffer, format, width, height, stride)`` for ``stream``."""
