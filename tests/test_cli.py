import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
import signal
import time

import cv2
import numpy as np
import pytest

from capture.camera import StaticCamera
from capture.pipeline import CapturePipeline
from cli import viewer
from cli.viewer import main, save_cycle
from utils.config import Config, YamlConfigLoader
from utils.error_tracker import FrameTimeoutError
from utils.io import frame_paths, list_recorded_frames


def scene(seed: int, h: int = 4, w: int = 5):
    rng = np.random.default_rng(seed)
    color = rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8)
    depth = rng.integers(1, 4000, size=(h, w), dtype=np.uint16)
    return color, depth


def record(directory, frames=2):
    directory.mkdir(parents=True, exist_ok=True)
    pipeline = CapturePipeline(StaticCamera([scene(s) for s in range(frames)]))
    for _ in range(frames):
        save_cycle(directory, pipeline())
    return directory


class StalledCamera(StaticCamera):
    def _wait(self, timeout_ms):
        raise FrameTimeoutError("Frame didn't arrive", "wait_all_streams", (timeout_ms,))


@pytest.fixture
def common_args(tmp_path, monkeypatch):
    """Config pointing the run log into tmp_path; restores global hooks."""
    config_file = tmp_path / "app.yaml"
    config_file.write_text(f"logging:\n  log_dir: {tmp_path / 'logs'}\n")
    handlers = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    yield ["--config", str(config_file)]
    for sig, handler in handlers.items():
        signal.signal(sig, handler)
    Config.set_loader(YamlConfigLoader())


def test_snapshot_writes_frames_at_the_paced_rate(tmp_path, common_args):
    recording = record(tmp_path / "rec")
    out = tmp_path / "out"
    started = time.monotonic()
    rc = main(
        ["snapshot", *common_args, "--replay", str(recording),
         "-n", "5", "--interval-ms", "100", "-o", str(out)]
    )
    elapsed = time.monotonic() - started
    assert rc == 0
    assert list_recorded_frames(out) == [0, 1, 2, 3, 4]
    assert all(path.is_file() for path in frame_paths(out, 4))
    # 5 cycles are 4 intervals apart
    assert elapsed >= 0.4


def test_snapshot_replays_recorded_depth(tmp_path, common_args):
    recording = record(tmp_path / "rec")
    out = tmp_path / "out"
    rc = main(
        ["snapshot", *common_args, "--replay", str(recording),
         "-n", "2", "--interval-ms", "0", "-o", str(out)]
    )
    assert rc == 0
    for index in (0, 1):
        original = np.load(frame_paths(recording, index)[1])
        copied = np.load(frame_paths(out, index)[1])
        assert np.array_equal(original, copied)


def test_missing_replay_directory_is_fatal(tmp_path, common_args):
    out = tmp_path / "out"
    rc = main(
        ["snapshot", *common_args, "--replay", str(tmp_path / "missing"), "-o", str(out)]
    )
    assert rc == 1
    assert not list(out.iterdir())
    assert main(["view", *common_args, "--replay", str(tmp_path / "missing")]) == 1


def test_snapshot_rejects_non_positive_count(tmp_path, common_args):
    recording = record(tmp_path / "rec")
    assert main(["snapshot", *common_args, "--replay", str(recording), "-n", "0"]) == 1


def test_view_shows_side_by_side_until_escape(tmp_path, common_args, monkeypatch):
    recording = record(tmp_path / "rec")
    shown = []
    monkeypatch.setattr(cv2, "imshow", lambda title, canvas: shown.append((title, canvas)))
    monkeypatch.setattr(cv2, "waitKey", lambda delay: viewer.ESC_KEY if shown else -1)
    monkeypatch.setattr(cv2, "destroyAllWindows", lambda: None)

    rc = main(["view", *common_args, "--replay", str(recording), "--interval-ms", "5"])

    assert rc == 0
    title, canvas = shown[0]
    assert title == "Depth Capture (Replay rec)"
    assert canvas.shape == (4 + 2 * 12, 5 + 5 + 3 * 12, 3)
    color, _ = scene(0)
    assert np.array_equal(canvas[12:16, 12:17], color)


def test_view_exits_with_error_when_camera_stalls(tmp_path, common_args, monkeypatch):
    camera = StalledCamera.single(*scene(0))
    monkeypatch.setattr(viewer, "open_camera", lambda args, stream_cfg: camera)
    monkeypatch.setattr(cv2, "imshow", lambda title, canvas: None)
    monkeypatch.setattr(cv2, "waitKey", lambda delay: -1)
    monkeypatch.setattr(cv2, "destroyAllWindows", lambda: None)

    assert main(["view", *common_args, "--interval-ms", "5"]) == 1
    assert not camera.started


def test_info_prints_stream_sizes(tmp_path, common_args, capsys):
    recording = record(tmp_path / "rec")
    assert main(["info", *common_args, "--replay", str(recording)]) == 0
    out = capsys.readouterr().out
    assert "Camera: Replay rec" in out
    assert "color: 5x4" in out
    assert "depth: 5x4" in out
