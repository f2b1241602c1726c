import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
import argparse

import pytest

from cli.viewer import load_settings
from utils.config import Config, ConfigLoader, YamlConfigLoader
from utils.settings import capture, streams


class DictLoader(ConfigLoader):
    def __init__(self, data):
        self.data = data

    def load(self, filename):
        return self.data


@pytest.fixture
def restore_loader():
    yield
    Config.set_loader(YamlConfigLoader())


def test_section_overlays_defaults(tmp_path, restore_loader):
    Config.set_loader(
        DictLoader(
            {
                "logging": {"level": "DEBUG", "log_dir": str(tmp_path)},
                "capture": {"interval_ms": 33, "bogus": 1},
            }
        )
    )
    Config.load("unused.yaml", force_reload=True)
    assert Config.get("capture.interval_ms") == 33
    assert Config.get("capture.missing", 7) == 7
    cfg = Config.section("capture", capture)
    assert cfg.interval_ms == 33
    assert cfg.wait_timeout_ms == capture.wait_timeout_ms
    assert not hasattr(cfg, "bogus")
    assert Config.section("streams", streams) == streams


def test_yaml_file_and_command_line(tmp_path, restore_loader):
    config_file = tmp_path / "app.yaml"
    config_file.write_text(
        "logging:\n"
        f"  log_dir: {tmp_path / 'logs'}\n"
        "capture:\n"
        "  interval_ms: 40\n"
        "  skip_failed_cycles: true\n"
        "streams:\n"
        "  color_width: 1280\n"
    )
    args = argparse.Namespace(config=config_file, replay=None, interval_ms=None, timeout_ms=0)
    capture_cfg, stream_cfg, viewer_cfg = load_settings(args)
    assert capture_cfg.interval_ms == 40
    assert capture_cfg.skip_failed_cycles is True
    assert capture_cfg.wait_timeout_ms is None
    assert stream_cfg.color_width == 1280
    assert stream_cfg.color_height == streams.color_height
    assert viewer_cfg.margin == 12

    args.interval_ms = 5
    capture_cfg, _, _ = load_settings(args)
    assert capture_cfg.interval_ms == 5


def test_shipped_config_matches_defaults():
    data = YamlConfigLoader().load(
        os.path.join(os.path.dirname(os.path.dirname(__file__)), "conf", "app.yaml")
    )
    assert data["capture"]["interval_ms"] == capture.interval_ms
    assert data["streams"]["depth_preset"] == streams.depth_preset


def test_zero_timeout_from_yaml_means_unbounded(tmp_path, restore_loader):
    config_file = tmp_path / "app.yaml"
    config_file.write_text(
        "logging:\n"
        f"  log_dir: {tmp_path / 'logs'}\n"
        "capture:\n"
        "  wait_timeout_ms: 0\n"
    )
    args = argparse.Namespace(config=config_file, replay=None, interval_ms=None, timeout_ms=None)
    capture_cfg, _, _ = load_settings(args)
    assert capture_cfg.wait_timeout_ms is None

    args.timeout_ms = 250
    capture_cfg, _, _ = load_settings(args)
    assert capture_cfg.wait_timeout_ms == 250


def test_log_dir_defaults_to_project_path():
    from utils.settings import logging, paths

    assert logging.log_dir == paths.LOG_DIR
