"""Histogram-equalized depth colorization.

Each non-zero depth sample is ranked by the cumulative histogram,
``f = h[d] * 255 // h[65535]``, and drawn as ``(B, G, R) = (255 - f, 0, f)``:
near surfaces trend blue, far surfaces red, whatever depth range the scene
spans.  Zero (no return) samples get the sentinel color.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from utils.settings import DEPTH_DOMAIN
from .histogram import as_depth_samples, build_histogram, valid_sample_count


class ColorPixel(NamedTuple):
    """One output pixel in sensor (B, G, R) byte order."""

    blue: int
    green: int
    red: int


SENTINEL = ColorPixel(blue=0, green=5, red=20)
SENTINEL_BGR = np.array(SENTINEL, dtype=np.uint8)


def _check_histogram(histogram: np.ndarray) -> np.ndarray:
    histogram = np.asarray(histogram)
    if histogram.shape != (DEPTH_DOMAIN,):
        raise ValueError(
            f"Histogram must have {DEPTH_DOMAIN} bins, got shape {histogram.shape}"
        )
    return histogram


def equalize(depth: np.ndarray, histogram: np.ndarray) -> np.ndarray:
    """Map depth samples to their 0-255 rank; zeros map to 0.

    The product ``h[d] * 255`` is formed in 64 bits, so frames of any size a
    uint32 histogram can describe stay exact.
    """
    histogram = _check_histogram(histogram)
    samples = as_depth_samples(depth)
    total = valid_sample_count(histogram)
    out = np.zeros(samples.shape, dtype=np.uint8)
    valid = samples != 0
    if total == 0 or not valid.any():
        return out.reshape(np.shape(depth))
    ranks = histogram[samples[valid]].astype(np.uint64)
    out[valid] = (ranks * np.uint64(255) // np.uint64(total)).astype(np.uint8)
    return out.reshape(np.shape(depth))


def colorize_sample(d: int, histogram: np.ndarray) -> ColorPixel:
    """Reference per-sample colorization."""
    d = int(d) & 0xFFFF
    if d == 0:
        return SENTINEL
    histogram = _check_histogram(histogram)
    f = int(histogram[d]) * 255 // int(histogram[DEPTH_DOMAIN - 1])
    return ColorPixel(blue=255 - f, green=0, red=f)


def colorize_depth(
    depth: np.ndarray, histogram: np.ndarray | None = None
) -> np.ndarray:
    """Colorize a whole ``(H, W)`` depth frame into a fresh ``(H, W, 3)`` uint8 image."""
    depth = np.asarray(depth)
    if depth.ndim != 2:
        raise ValueError(f"Depth frame must be 2-D, got shape {depth.shape}")
    if histogram is None:
        histogram = build_histogram(depth)
    f = equalize(depth, histogram)
    image = np.empty(depth.shape + (3,), dtype=np.uint8)
    image[..., 0] = 255 - f
    image[..., 1] = 0
    image[..., 2] = f
    image[as_depth_samples(depth).reshape(depth.shape) == 0] = SENTINEL_BGR
    return image
