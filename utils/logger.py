"""Run logging for the capture tools, built on loguru and tqdm."""

from __future__ import annotations

import os
import sys
import threading
from datetime import datetime
from pathlib import Path

from loguru import logger as _logger
from loguru._logger import Logger as LoguruLogger
from tqdm.auto import tqdm

from utils.settings import logging as LOGCFG

LoggerType = LoguruLogger

_log_file: Path | None = None


class Logger:
    """Console + per-run file sinks shared by every capture module."""

    @staticmethod
    def setup(level: str | None = None, log_dir: str | Path | None = None) -> Path:
        """
        Replace all sinks with stdout and a fresh ``capture_<timestamp>.log``.

        Called lazily by :meth:`get_logger` and again by ``Config.load`` once
        the YAML ``logging`` section is known. Returns the new log file.
        """
        global _log_file
        level = level or LOGCFG.level
        directory = Path(log_dir) if log_dir is not None else LOGCFG.log_dir
        directory.mkdir(parents=True, exist_ok=True)
        _logger.remove()
        _logger.add(sys.stdout, level=level, format=LOGCFG.log_format)
        _log_file = directory / f"capture_{datetime.now():%Y%m%d_%H%M%S}.log"
        _logger.add(_log_file, level=level, format=LOGCFG.log_file_format)
        return _log_file

    @staticmethod
    def get_logger(name: str) -> LoguruLogger:
        """Return the shared logger bound to ``name`` (shown as the module column)."""
        if _log_file is None:
            Logger.setup()
        return _logger.bind(module=name)

    @staticmethod
    def log_file() -> Path | None:
        return _log_file

    @staticmethod
    def frame_counter(total: int, desc: str) -> tqdm:
        """Manual progress bar, advanced with ``update()`` once per saved frame."""
        return tqdm(
            total=total,
            desc=desc,
            unit="frame",
            leave=False,
            bar_format=LOGCFG.progress_bar_format,
        )


class DriverStderr:
    """
    Context manager routing native writes on fd 2 into ``logger``.

    librealsense reports device trouble straight to the C-level stderr,
    bypassing Python; each such line becomes a ``[tag]`` warning in the run log.
    """

    def __init__(self, logger: LoggerType, tag: str = "librealsense") -> None:
        self.logger = logger
        self.tag = tag
        self._saved_fd: int | None = None
        self._write_fd: int | None = None
        self._pump_thread: threading.Thread | None = None

    def _pump(self, read_fd: int) -> None:
        with os.fdopen(read_fd, "r", errors="replace") as stream:
            for line in stream:
                if line.strip():
                    self.logger.warning(f"[{self.tag}] {line.rstrip()}")

    def __enter__(self) -> DriverStderr:
        sys.stderr.flush()
        read_fd, self._write_fd = os.pipe()
        self._saved_fd = os.dup(2)
        os.dup2(self._write_fd, 2)
        self._pump_thread = threading.Thread(
            target=self._pump, args=(read_fd,), name=f"{self.tag}-stderr", daemon=True
        )
        self._pump_thread.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        sys.stderr.flush()
        os.dup2(self._saved_fd, 2)
        os.close(self._saved_fd)
        # The pump sees EOF once the last write end of the pipe is closed
        os.close(self._write_fd)
        self._pump_thread.join(timeout=0.5)
