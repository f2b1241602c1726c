import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
import numpy as np
import pytest

from capture.camera import FileCamera, StaticCamera
from capture.colorize import colorize_depth
from capture.pipeline import CapturePipeline, capture_cycle
from cli.viewer import guarded_cycle, save_cycle
from utils.error_tracker import CameraConnectionError, CameraError, FrameTimeoutError
from utils.io import list_recorded_frames
from utils.settings import CaptureCfg


def scene(h: int = 6, w: int = 8, seed: int = 0):
    rng = np.random.default_rng(seed)
    color = rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8)
    depth = rng.integers(0, 3000, size=(h, w), dtype=np.uint16)
    depth[0, 0] = 0
    return color, depth


class TimeoutCamera(StaticCamera):
    def _wait(self, timeout_ms):
        raise FrameTimeoutError("Frame didn't arrive", "wait_all_streams", (timeout_ms,))


def test_cycle_produces_color_and_depth_images():
    color, depth = scene()
    result = capture_cycle(StaticCamera.single(color, depth, row_padding=4))
    assert np.array_equal(result.color.array, color)
    assert np.array_equal(result.depth.array, colorize_depth(depth))
    assert result.depth.stride == depth.shape[1] * 3
    assert result.depth.array[0, 0].tolist() == [0, 5, 20]
    assert np.array_equal(result.raw_depth, depth)
    assert result.duration >= 0.0


def test_two_pixel_scenario_end_to_end():
    color = np.zeros((1, 2, 3), dtype=np.uint8)
    depth = np.array([[100, 200]], dtype=np.uint16)
    result = capture_cycle(StaticCamera.single(color, depth))
    assert result.depth.to_bytes() == bytes([128, 0, 127, 0, 0, 255])


def test_intrinsics_are_read_every_cycle():
    small, large = scene(2, 3, seed=1), scene(5, 7, seed=2)
    pipeline = CapturePipeline(StaticCamera([small, large]))
    first, second = pipeline(), pipeline()
    assert (first.color.width, first.color.height) == (3, 2)
    assert (second.depth.width, second.depth.height) == (7, 5)
    assert (first.index, second.index) == (0, 1)
    assert pipeline.cycles == 2


def test_cycles_on_frozen_frame_are_identical():
    color, depth = scene(seed=3)
    camera = StaticCamera.single(color, depth)
    first, second = capture_cycle(camera), capture_cycle(camera)
    assert first.depth.to_bytes() == second.depth.to_bytes()
    assert first.depth == second.depth


def test_camera_errors_propagate():
    color, depth = scene()
    with pytest.raises(FrameTimeoutError) as info:
        capture_cycle(TimeoutCamera.single(color, depth), timeout_ms=5)
    assert info.value.failed_function == "wait_all_streams"
    assert "wait_all_streams(5)" in info.value.describe()


def test_guarded_cycle_skips_only_when_configured():
    from utils.logger import Logger

    logger = Logger.get_logger("tests.pipeline")
    camera = TimeoutCamera.single(*scene())
    skip = guarded_cycle(CapturePipeline(camera), CaptureCfg(skip_failed_cycles=True), logger)
    assert skip() is None
    strict = guarded_cycle(CapturePipeline(camera), CaptureCfg(), logger)
    with pytest.raises(CameraError):
        strict()


def test_snapshot_directory_replays(tmp_path):
    frames = [scene(4, 5, seed=s) for s in range(3)]
    pipeline = CapturePipeline(StaticCamera(frames))
    for _ in frames:
        save_cycle(tmp_path, pipeline())
    assert list_recorded_frames(tmp_path) == [0, 1, 2]

    with FileCamera(tmp_path, loop=False) as camera:
        replayed = [capture_cycle(camera) for _ in frames]
        with pytest.raises(CameraError):
            capture_cycle(camera)
    for (color, depth), result in zip(frames, replayed):
        assert np.array_equal(result.color.array, color)
        assert np.array_equal(result.raw_depth, depth)


def test_replay_requires_recorded_frames(tmp_path):
    with pytest.raises(CameraConnectionError):
        FileCamera(tmp_path / "missing").start()
    with pytest.raises(CameraConnectionError):
        FileCamera(tmp_path).start()
