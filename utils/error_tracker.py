"""Camera error types and centralized unhandled exception tracking."""

from __future__ import annotations

import signal
import sys
import traceback
from typing import Callable, List, Optional, Sequence

from utils.logger import Logger


class CameraError(Exception):
    """Base class for camera related errors.

    Carries the name and arguments of the driver call that failed so the
    message shown to the user can point at it.
    """

    def __init__(
        self,
        message: str,
        failed_function: str = "",
        failed_args: Sequence[object] | str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.failed_function = failed_function
        if isinstance(failed_args, str):
            self.failed_args = failed_args
        else:
            self.failed_args = ", ".join(str(a) for a in failed_args)

    def describe(self) -> str:
        """Human readable description used by the CLI on fatal errors."""
        if not self.failed_function:
            return f"RealSense error:\n  {self.message}"
        return (
            f"RealSense error calling {self.failed_function}"
            f"({self.failed_args}):\n  {self.message}"
        )


class CameraConnectionError(CameraError):
    """Raised when the camera device cannot be opened."""


class NoCameraError(CameraConnectionError):
    """Raised when no device is connected."""


class FrameTimeoutError(CameraError):
    """Raised when a bounded frame-sync wait expires."""


class StaleFrameError(RuntimeError):
    """Raised when a borrowed frame is read after the next wait."""


class ImageFormatError(ValueError):
    """Raised when pixel data does not match the expected layout."""


class HistogramOverflowError(ValueError):
    """Raised when a frame has more samples than a 32-bit counter holds."""


class ErrorTracker:
    """Installable global exception hook that logs uncaught errors."""

    logger = Logger.get_logger("utils.error_tracker")
    _installed = False
    _orig_hook: Optional[Callable[..., None]] = None
    _cleanup_funcs: List[Callable[[], None]] = []

    @classmethod
    def register_cleanup(cls, func: Callable[[], None]) -> None:
        """Register a cleanup function executed on fatal errors."""
        cls._cleanup_funcs.append(func)

    @classmethod
    def unregister_cleanup(cls, func: Callable[[], None]) -> None:
        """Drop a cleanup function once its resource is released."""
        if func in cls._cleanup_funcs:
            cls._cleanup_funcs.remove(func)

    @classmethod
    def _run_cleanup(cls) -> None:
        # Most recently registered resources are released first
        for func in reversed(cls._cleanup_funcs):
            try:
                func()
            except Exception as e:
                cls.logger.error(f"Cleanup failed: {e}")
        cls._cleanup_funcs.clear()

    @classmethod
    def install_excepthook(cls) -> None:
        """Log unhandled exceptions through the project logger."""
        if cls._installed:
            return

        cls._orig_hook = sys.excepthook

        def _hook(exc_type, exc, tb) -> None:
            message = "".join(traceback.format_exception(exc_type, exc, tb))
            cls.logger.error(f"Unhandled exception:\n{message}")
            cls._run_cleanup()
            if cls._orig_hook:
                cls._orig_hook(exc_type, exc, tb)

        sys.excepthook = _hook
        cls._installed = True
        cls.logger.debug("Global exception hook installed")

    @classmethod
    def install_signal_handlers(cls) -> None:
        """Shutdown gracefully on SIGINT or SIGTERM."""

        def _handler(signum, frame) -> None:
            cls.logger.info(f"Received signal {signum}")
            cls._run_cleanup()
            raise SystemExit(1)

        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
