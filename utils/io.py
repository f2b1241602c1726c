"""File I/O helpers for recorded frames."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Tuple

import cv2
import numpy as np

from utils.settings import DEPTH_EXT, IMAGE_EXT

_FRAME_RE = re.compile(r"^color_(\d+)" + re.escape(IMAGE_EXT) + "$")


def read_image(path: str | Path) -> np.ndarray | None:
    """Return an image from ``path`` or ``None`` if loading fails."""
    return cv2.imread(str(path), cv2.IMREAD_COLOR)


def write_image(path: str | Path, img: np.ndarray) -> None:
    """Save an image to disk."""
    # OpenCV wants a writable buffer even for inputs on some builds
    img = np.require(img, requirements=["C", "W"])
    if not cv2.imwrite(str(path), img):
        raise IOError(f"Failed to write image {path}")


def load_npy(path: str | Path) -> np.ndarray:
    """Load an ``.npy`` array."""
    return np.load(str(path))


def save_npy(path: str | Path, arr: np.ndarray) -> None:
    """Save an array to an ``.npy`` file."""
    np.save(str(path), arr)


def frame_paths(directory: str | Path, index: int) -> Tuple[Path, Path, Path]:
    """Return ``(color, raw depth, colorized depth)`` paths for frame ``index``."""
    directory = Path(directory)
    stem = f"{index:04d}"
    return (
        directory / f"color_{stem}{IMAGE_EXT}",
        directory / f"depth_{stem}{DEPTH_EXT}",
        directory / f"depth_{stem}{IMAGE_EXT}",
    )


def list_recorded_frames(directory: str | Path) -> List[int]:
    """Indices of complete color/depth pairs in ``directory``, sorted."""
    directory = Path(directory)
    indices = []
    for entry in directory.iterdir():
        match = _FRAME_RE.match(entry.name)
        if match is None:
            continue
        index = int(match.group(1))
        if frame_paths(directory, index)[1].is_file():
            indices.append(index)
    return sorted(indices)
