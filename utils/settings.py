"""Project wide configuration dataclasses and default values."""

from dataclasses import dataclass
from pathlib import Path

# Root dir
BASE_DIR = Path(__file__).resolve().parent.parent

# File name extensions for recorded frames
IMAGE_EXT = ".png"
DEPTH_EXT = ".npy"

# Number of distinct 16-bit depth values
DEPTH_DOMAIN = 0x10000


@dataclass(frozen=True)
class Paths:
    """
    Dataclass aggregating the filesystem paths used in the project.
    """

    CONF_DIR: Path = BASE_DIR / "conf"
    CONFIG_FILE: Path = CONF_DIR / "app.yaml"
    SNAPSHOT_DIR: Path = BASE_DIR / ".captures"
    LOG_DIR: Path = BASE_DIR / ".logs"


paths = Paths()


@dataclass(frozen=True)
class LoggingCfg:
    """
    Logging configuration for the project.

    - level: Log level ("INFO", "DEBUG", etc.)
    - log_dir: Directory receiving one ``capture_<timestamp>.log`` per run.
    - log_format: Console log output format.
    - log_file_format: File log output format.
    - progress_bar_format: TQDM progress bar format.
    """

    level: str = "INFO"
    log_dir: Path = paths.LOG_DIR
    log_format: str = (
        "<green>{time:MM-DD HH:mm:ss}</green>"
        "[<level>{level:.3}</level>]"
        "[<cyan>{extra[module]:.16}</cyan>:<cyan>{line:<3}</cyan>]"
        "<level>{message}</level>"
    )
    log_file_format: str = "{time:YYYY-MM-DD HH:mm:ss}[{level}][{file}:{line}]{message}"
    progress_bar_format: str = (
        "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]"
    )


logging = LoggingCfg()


@dataclass(frozen=True)
class CaptureCfg:
    """
    Acquisition cadence.

    - interval_ms: pacer tick interval (16 ms ~ 60 Hz ceiling)
    - wait_timeout_ms: bound on the frame-sync wait, ``None`` (0 in YAML or on
      the command line) blocks forever
    - skip_failed_cycles: log a failed steady-state cycle and keep going
    """

    interval_ms: int = 16
    wait_timeout_ms: int | None = 5000
    skip_failed_cycles: bool = False


capture = CaptureCfg()


@dataclass(frozen=True)
class StreamCfg:
    """
    Stream setup handed to the camera at startup.
    The core only ever reads the intrinsics these produce.
    """

    depth_preset: str = "best_quality"
    color_width: int = 640
    color_height: int = 480
    color_fps: int = 60


streams = StreamCfg()


@dataclass(frozen=True)
class ViewerCfg:
    """Window layout for the live viewer."""

    margin: int = 12
    window_title: str = "Depth Capture ({name})"
    background: tuple[int, int, int] = (240, 240, 240)  # BGR


viewer = ViewerCfg()

__all__ = [
    "BASE_DIR",
    "IMAGE_EXT",
    "DEPTH_EXT",
    "DEPTH_DOMAIN",
    "Paths",
    "LoggingCfg",
    "CaptureCfg",
    "StreamCfg",
    "ViewerCfg",
    "paths",
    "logging",
    "capture",
    "streams",
    "viewer",
]
