"""In-memory cameras backed by numpy frame slots."""

from __future__ import annotations

from typing import Any, Iterable, Sequence, Tuple

import numpy as np

from utils.error_tracker import CameraError, ImageFormatError
from .base import CameraInterface, Intrinsics, PixelFormat, Stream

FramePair = Tuple[np.ndarray, np.ndarray]


def _check_pair(color: np.ndarray, depth: np.ndarray) -> FramePair:
    color = np.asarray(color)
    depth = np.asarray(depth)
    if color.ndim != 3 or color.shape[2] != 3 or color.dtype != np.uint8:
        raise ImageFormatError(
            f"Color frame must be (H, W, 3) uint8, got {color.shape} {color.dtype}"
        )
    if depth.ndim != 2 or depth.dtype not in (np.uint16, np.int16):
        raise ImageFormatError(
            f"Depth frame must be (H, W) 16-bit, got {depth.shape} {depth.dtype}"
        )
    return color, depth.view(np.uint16)


class SlotCamera(CameraInterface):
    """Camera holding one overwritable buffer per stream.

    Subclasses supply frames through :meth:`_next_pair`.  Rows can be padded
    with ``row_padding`` extra bytes to mimic drivers whose stride is wider
    than the visible row.
    """

    def __init__(self, name: str = "Memory Camera", row_padding: int = 0) -> None:
        super().__init__()
        if row_padding < 0:
            raise ValueError("row_padding must be >= 0")
        self._name = name
        self.row_padding = row_padding
        self._slots: dict[Stream, np.ndarray] = {}
        self._sizes: dict[Stream, Intrinsics] = {}
        self.started = False

    @property
    def name(self) -> str:
        return self._name

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.started = False

    def _next_pair(self) -> FramePair:
        raise NotImplementedError

    def _store(self, stream: Stream, pixels: np.ndarray, fmt: PixelFormat) -> None:
        height, width = pixels.shape[:2]
        row_bytes = width * fmt.bytes_per_pixel
        stride = row_bytes + self.row_padding
        slot = self._slots.get(stream)
        if slot is None or slot.shape != (height, stride):
            slot = np.zeros((height, stride), dtype=np.uint8)
            self._slots[stream] = slot
        packed = np.ascontiguousarray(pixels.astype(fmt.dtype, copy=False))
        slot[:, :row_bytes] = packed.view(np.uint8).reshape(height, row_bytes)
        self._sizes[stream] = Intrinsics(width, height)

    def _wait(self, timeout_ms: int | None) -> None:
        color, depth = _check_pair(*self._next_pair())
        self._store(Stream.COLOR, color, PixelFormat.BGR8)
        self._store(Stream.DEPTH, depth, PixelFormat.Z16)

    def get_stream_intrinsics(self, stream: Stream) -> Intrinsics:
        try:
            return self._sizes[stream]
        except KeyError:
            raise CameraError(
                "Stream has no frames yet", "get_stream_intrinsics", (stream.value,)
            ) from None

    def _pixels(self, stream: Stream) -> Tuple[Any, PixelFormat, int, int, int]:
        slot = self._slots[stream]
        size = self._sizes[stream]
        fmt = PixelFormat.BGR8 if stream is Stream.COLOR else PixelFormat.Z16
        # memoryview keeps later overwrites of the slot visible to the view
        return memoryview(slot).cast("B"), fmt, size.width, size.height, slot.shape[1]


class StaticCamera(SlotCamera):
    """Replays a fixed sequence of ``(color, depth)`` arrays in a loop."""

    def __init__(
        self,
        frames: Sequence[FramePair] | Iterable[FramePair],
        name: str = "Static Camera",
        row_padding: int = 0,
    ) -> None:
        super().__init__(name=name, row_padding=row_padding)
        self.frames = [_check_pair(c, d) for c, d in frames]
        if not self.frames:
            raise ValueError("StaticCamera needs at least one frame pair")
        self._index = 0

    @classmethod
    def single(
        cls, color: np.ndarray, depth: np.ndarray, **kwargs
    ) -> "StaticCamera":
        return cls([(color, depth)], **kwargs)

    def _next_pair(self) -> FramePair:
        pair = self.frames[self._index % len(self.frames)]
        self._index += 1
        return pair
