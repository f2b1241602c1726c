"""Stride-exact 24-bit display images."""

from __future__ import annotations

import numpy as np

from utils.error_tracker import ImageFormatError
from .camera.base import Intrinsics, PixelFormat, RawFrame

BYTES_PER_PIXEL = 3


class DisplayImage:
    """Immutable ``(height, width, 3)`` uint8 image with row stride ``width * 3``.

    Always backed by memory owned by the image itself, never by a camera
    buffer.
    """

    __slots__ = ("_array",)

    def __init__(self, array: np.ndarray) -> None:
        if array.ndim != 3 or array.shape[2] != BYTES_PER_PIXEL or array.dtype != np.uint8:
            raise ImageFormatError(
                f"Display image must be (H, W, 3) uint8, got {array.shape} {array.dtype}"
            )
        if not array.flags.c_contiguous:
            array = array.copy(order="C")
        array.flags.writeable = False
        self._array = array

    @classmethod
    def from_raw_frame(
        cls, frame: RawFrame, intrinsics: Intrinsics | None = None
    ) -> "DisplayImage":
        """Copy a borrowed BGR8 camera frame, dropping any row padding."""
        if frame.format is not PixelFormat.BGR8:
            raise ImageFormatError(
                f"Only {PixelFormat.BGR8.value} frames can be displayed directly, "
                f"got {frame.format.value}"
            )
        if intrinsics is not None and (frame.width, frame.height) != (
            intrinsics.width,
            intrinsics.height,
        ):
            raise ImageFormatError(
                f"{frame.stream.value} frame is {frame.width}x{frame.height}, "
                f"stream reports {intrinsics.width}x{intrinsics.height}"
            )
        return cls(frame.copy_array())

    @classmethod
    def from_synthesized(cls, array: np.ndarray) -> "DisplayImage":
        """Take ownership of a freshly built image; callers must not keep writing to it."""
        return cls(np.ascontiguousarray(array))

    def __repr__(self) -> str:
        return f"DisplayImage({self.width}x{self.height})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DisplayImage):
            return NotImplemented
        return self._array.shape == other._array.shape and bool(
            np.array_equal(self._array, other._array)
        )

    __hash__ = None

    @property
    def width(self) -> int:
        return self._array.shape[1]

    @property
    def height(self) -> int:
        return self._array.shape[0]

    @property
    def stride(self) -> int:
        return self._array.strides[0]

    @property
    def array(self) -> np.ndarray:
        """Read-only view of the pixels."""
        return self._array

    def to_bytes(self) -> bytes:
        """Row-major BGR bytes, ``width * height * 3`` long."""
        return self._array.tobytes()


def compose_side_by_side(
    color: DisplayImage,
    depth: DisplayImage,
    margin: int = 12,
    background: tuple[int, int, int] = (240, 240, 240),
) -> np.ndarray:
    """Lay out color and depth next to each other with ``margin`` px gutters.

    The canvas is ``cw + dw + 3 * margin`` wide and ``max(ch, dh) + 2 * margin``
    high, color at ``(margin, margin)`` and depth at ``(2 * margin + cw, margin)``.
    """
    if margin < 0:
        raise ValueError("margin must be >= 0")
    width = color.width + depth.width + 3 * margin
    height = max(color.height, depth.height) + 2 * margin
    canvas = np.empty((height, width, 3), dtype=np.uint8)
    canvas[:] = np.array(background, dtype=np.uint8)
    canvas[margin : margin + color.height, margin : margin + color.width] = color.array
    x = 2 * margin + color.width
    canvas[margin : margin + depth.height, x : x + depth.width] = depth.array
    return canvas
