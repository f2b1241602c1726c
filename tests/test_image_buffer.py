import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
import numpy as np
import pytest

from capture.camera import Intrinsics, PixelFormat, StaticCamera, Stream
from capture.image_buffer import DisplayImage, compose_side_by_side
from utils.error_tracker import CameraError, ImageFormatError, StaleFrameError


def make_color(h: int, w: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8)


def make_depth(h: int, w: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 0x10000, size=(h, w), dtype=np.uint16)


def test_padded_color_frame_is_copied_without_padding():
    color = make_color(6, 5)
    camera = StaticCamera.single(color, make_depth(6, 5), row_padding=7)
    camera.wait_all_streams()
    frame = camera.get_image_pixels(Stream.COLOR)
    assert frame.stride == 5 * 3 + 7
    assert frame.format is PixelFormat.BGR8

    image = DisplayImage.from_raw_frame(frame, camera.get_stream_intrinsics(Stream.COLOR))
    assert (image.width, image.height) == (5, 6)
    assert image.stride == 5 * 3
    assert len(image.to_bytes()) == 5 * 6 * 3
    assert np.array_equal(image.array, color)


def test_depth_frame_copy_preserves_samples():
    depth = make_depth(4, 9, seed=2)
    camera = StaticCamera.single(make_color(4, 9), depth, row_padding=3)
    camera.wait_all_streams()
    frame = camera.get_image_pixels(Stream.DEPTH)
    assert frame.format is PixelFormat.Z16
    copied = frame.copy_array()
    assert copied.dtype == np.uint16
    assert np.array_equal(copied, depth)
    assert len(frame.copy_bytes()) == 4 * 9 * 2


def test_frame_goes_stale_after_next_wait():
    camera = StaticCamera.single(make_color(2, 2), make_depth(2, 2))
    camera.wait_all_streams()
    frame = camera.get_image_pixels(Stream.COLOR)
    assert frame.valid
    camera.wait_all_streams()
    assert not frame.valid
    with pytest.raises(StaleFrameError):
        frame.copy_bytes()
    with pytest.raises(StaleFrameError):
        DisplayImage.from_raw_frame(frame)


def test_display_image_does_not_alias_camera_memory():
    first, second = make_color(3, 4, seed=1), make_color(3, 4, seed=2)
    camera = StaticCamera([(first, make_depth(3, 4)), (second, make_depth(3, 4))])
    camera.wait_all_streams()
    image = DisplayImage.from_raw_frame(camera.get_image_pixels(Stream.COLOR))
    camera.wait_all_streams()
    assert np.array_equal(image.array, first)
    assert np.array_equal(
        camera.get_image_pixels(Stream.COLOR).copy_array(), second
    )


def test_display_image_is_read_only():
    image = DisplayImage.from_synthesized(np.zeros((2, 3, 3), dtype=np.uint8))
    with pytest.raises(ValueError):
        image.array[0, 0, 0] = 1


def test_depth_frames_are_not_displayed_directly():
    camera = StaticCamera.single(make_color(2, 2), make_depth(2, 2))
    camera.wait_all_streams()
    with pytest.raises(ImageFormatError):
        DisplayImage.from_raw_frame(camera.get_image_pixels(Stream.DEPTH))


def test_intrinsics_mismatch_is_rejected():
    camera = StaticCamera.single(make_color(2, 3), make_depth(2, 3))
    camera.wait_all_streams()
    frame = camera.get_image_pixels(Stream.COLOR)
    with pytest.raises(ImageFormatError):
        DisplayImage.from_raw_frame(frame, Intrinsics(width=4, height=2))


def test_synthesized_buffer_layout_is_checked():
    with pytest.raises(ImageFormatError):
        DisplayImage.from_synthesized(np.zeros((2, 3, 4), dtype=np.uint8))
    with pytest.raises(ImageFormatError):
        DisplayImage.from_synthesized(np.zeros((2, 3, 3), dtype=np.uint16))


def test_pixels_before_first_wait():
    camera = StaticCamera.single(make_color(2, 2), make_depth(2, 2))
    with pytest.raises(CameraError):
        camera.get_image_pixels(Stream.COLOR)


def test_invalid_intrinsics():
    with pytest.raises(ImageFormatError):
        Intrinsics(width=0, height=10)


def test_side_by_side_layout():
    color = DisplayImage.from_synthesized(make_color(4, 6, seed=3))
    depth = DisplayImage.from_synthesized(make_color(3, 5, seed=4))
    canvas = compose_side_by_side(color, depth, margin=12)
    assert canvas.shape == (4 + 24, 6 + 5 + 36, 3)
    assert np.array_equal(canvas[12:16, 12:18], color.array)
    assert np.array_equal(canvas[12:15, 30:35], depth.array)
    assert canvas[0, 0].tolist() == [240, 240, 240]
