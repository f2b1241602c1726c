"""Cumulative histogram over the full 16-bit depth domain."""

from __future__ import annotations

import numpy as np

from utils.error_tracker import HistogramOverflowError
from utils.settings import DEPTH_DOMAIN

# Largest sample count a uint32 counter can hold
MAX_SAMPLES = np.iinfo(np.uint32).max


def as_depth_samples(depth: np.ndarray) -> np.ndarray:
    """Flatten ``depth`` to uint16 samples, reinterpreting signed input."""
    depth = np.asarray(depth)
    if depth.dtype == np.int16:
        depth = depth.view(np.uint16)
    elif depth.dtype != np.uint16:
        raise TypeError(f"Depth samples must be 16-bit, got {depth.dtype}")
    return depth.ravel()


def frequency_histogram(depth: np.ndarray) -> np.ndarray:
    """Count occurrences of every depth value, 65536 uint32 counters."""
    samples = as_depth_samples(depth)
    if samples.size > MAX_SAMPLES:
        raise HistogramOverflowError(
            f"{samples.size} samples overflow 32-bit histogram counters"
        )
    counts = np.bincount(samples, minlength=DEPTH_DOMAIN)
    return counts.astype(np.uint32)


def build_histogram(depth: np.ndarray) -> np.ndarray:
    """Return the cumulative depth histogram of one frame.

    After the pass ``h[v]`` holds the number of samples in ``1..v``.  The
    accumulation starts at index 2: ``h[0]`` keeps the count of invalid
    (zero) samples and ``h[1]`` stays a plain frequency, which is the same
    value since nothing lies below 1 once zeros are excluded.
    """
    hist = frequency_histogram(depth)
    # h[i] += h[i-1] for i in 2..65535
    hist[1:] = np.cumsum(hist[1:], dtype=np.uint64).astype(np.uint32)
    return hist


def valid_sample_count(histogram: np.ndarray) -> int:
    """Number of non-zero samples, the normalizer of the colorizer."""
    return int(histogram[DEPTH_DOMAIN - 1])
