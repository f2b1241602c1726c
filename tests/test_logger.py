import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from loguru import logger as loguru_logger

from utils.logger import DriverStderr, Logger


def test_setup_creates_run_log(tmp_path):
    log_file = Logger.setup(level="DEBUG", log_dir=tmp_path / "logs")
    assert log_file.parent == tmp_path / "logs"
    assert log_file.name.startswith("capture_") and log_file.suffix == ".log"
    Logger.get_logger("tests.logger").info("cycle 1 done")
    assert Logger.log_file() == log_file
    assert "cycle 1 done" in log_file.read_text()


def test_native_stderr_lines_become_warnings():
    messages = []
    sink = loguru_logger.add(messages.append, format="{level} {message}")
    try:
        with DriverStderr(Logger.get_logger("tests.logger")):
            os.write(2, b"Frames didn't arrive within 5000\n\n")
    finally:
        loguru_logger.remove(sink)
    assert any(
        m.startswith("WARNING [librealsense] Frames didn't arrive") for m in messages
    )


def test_frame_counter_counts_updates():
    with Logger.frame_counter(3, "Snapshot") as bar:
        bar.update()
        bar.update()
        assert bar.n == 2
        assert bar.total == 3
