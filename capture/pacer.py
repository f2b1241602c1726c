"""Timer-driven frame pacing.

:class:`FramePacer` triggers one cycle per tick and never lets two cycles
overlap: a tick arriving while a cycle is still running is dropped.  The
loop can run on the caller's thread (:meth:`FramePacer.run`) or on a worker
thread that hands results over through a single-slot :class:`FrameMailbox`
(:meth:`FramePacer.start_background`).
"""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

from utils.logger import Logger, LoggerType
from utils.settings import capture

T = TypeVar("T")

# Cycles between two achieved-rate log lines
_RATE_LOG_EVERY = 120


class PacerState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class FrameMailbox(Generic[T]):
    """Single-slot, latest-wins handoff between a producer and a consumer."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._item: Optional[T] = None
        self._has_item = False
        self._closed = False
        self.dropped = 0

    def put(self, item: T) -> bool:
        """Publish ``item``; returns ``True`` if an unread item was replaced."""
        with self._cond:
            replaced = self._has_item
            if replaced:
                self.dropped += 1
            self._item = item
            self._has_item = True
            self._cond.notify_all()
            return replaced

    def take(self, timeout: float | None = None) -> Optional[T]:
        """Remove and return the latest item, waiting up to ``timeout`` seconds.

        Returns ``None`` on timeout or when the mailbox is closed and empty.
        """
        with self._cond:
            if not self._cond.wait_for(
                lambda: self._has_item or self._closed, timeout=timeout
            ):
                return None
            if not self._has_item:
                return None
            item, self._item, self._has_item = self._item, None, False
            return item

    def peek(self) -> Optional[T]:
        with self._cond:
            return self._item if self._has_item else None

    def close(self) -> None:
        """Wake up every waiting consumer; later takes drain what is left."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed


class FramePacer:
    """Run ``cycle`` at most once per ``interval_ms``, never concurrently."""

    def __init__(
        self,
        cycle: Callable[[], Any],
        interval_ms: int | None = None,
        on_result: Callable[[Any], None] | None = None,
        logger: LoggerType | None = None,
    ) -> None:
        interval_ms = capture.interval_ms if interval_ms is None else interval_ms
        if interval_ms < 0:
            raise ValueError("interval_ms must be >= 0")
        self.cycle = cycle
        self.interval = interval_ms / 1000.0
        self.on_result = on_result
        self.logger = logger or Logger.get_logger("capture.pacer")
        self.cycles = 0
        self.skipped_ticks = 0
        self.error: BaseException | None = None
        self._busy = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._period: float | None = None
        self._last_tick: float | None = None
        self._next_tick: float | None = None

    @property
    def state(self) -> PacerState:
        return PacerState.RUNNING if self._busy.locked() else PacerState.IDLE

    @property
    def armed(self) -> bool:
        """``True`` while a tick would start a new cycle."""
        return not self._busy.locked()

    @property
    def achieved_rate(self) -> float:
        """Smoothed cycles per second, ``0.0`` before two ticks."""
        if not self._period:
            return 0.0
        return 1.0 / self._period

    def tick(self) -> bool:
        """Run one cycle unless one is already running.

        Returns ``False`` for a dropped tick.  The pacer is re-armed even when
        the cycle raises; the exception goes to the caller.
        """
        if not self._busy.acquire(blocking=False):
            self.skipped_ticks += 1
            return False
        try:
            self._track_rate()
            result = self.cycle()
        finally:
            self._busy.release()
        self.cycles += 1
        if self.on_result is not None and result is not None:
            self.on_result(result)
        return True

    def _track_rate(self) -> None:
        now = time.monotonic()
        if self._last_tick is not None:
            period = now - self._last_tick
            self._period = period if self._period is None else 0.9 * self._period + 0.1 * period
        self._last_tick = now
        if self.cycles and self.cycles % _RATE_LOG_EVERY == 0:
            self.logger.debug(
                f"{self.cycles} cycles, {self.achieved_rate:.1f} Hz, "
                f"{self.skipped_ticks} ticks dropped"
            )

    def run(self, max_cycles: int | None = None) -> int:
        """Tick on the calling thread until :meth:`stop` or ``max_cycles``.

        Ticks start ``interval`` apart, also across consecutive calls; a
        cycle slower than the interval delays the next tick instead of
        queueing one.  Returns the number of cycles run.
        """
        self._stop.clear()
        return self._loop(max_cycles)

    def _loop(self, max_cycles: int | None) -> int:
        done = 0
        next_tick = self._next_tick or time.monotonic()
        while not self._stop.is_set():
            if max_cycles is not None and done >= max_cycles:
                break
            if not self._sleep_until(next_tick):
                break
            next_tick = self._next_tick = time.monotonic() + self.interval
            if self.tick():
                done += 1
        return done

    def _sleep_until(self, deadline: float) -> bool:
        """Sleep until ``deadline``; ``False`` if stopped meanwhile."""
        delay = deadline - time.monotonic()
        while delay > 0:
            if self._stop.wait(delay):
                return False
            delay = deadline - time.monotonic()
        return not self._stop.is_set()

    def stop(self) -> None:
        """Stop the loop; a cycle already in progress finishes first."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def start_background(
        self, mailbox: FrameMailbox | None = None, max_cycles: int | None = None
    ) -> FrameMailbox:
        """Run the loop on a daemon thread publishing into ``mailbox``.

        A failing cycle ends the worker; the error is kept in :attr:`error`
        and re-raised by :meth:`raise_if_failed` / :meth:`join`.
        """
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Pacer already running in background")
        mailbox = mailbox or FrameMailbox()
        self.on_result = mailbox.put
        self.error = None
        # A stop() issued after this point ends the worker
        self._stop.clear()

        def _worker() -> None:
            try:
                self._loop(max_cycles)
            except BaseException as e:  # handed to the owner via raise_if_failed
                self.error = e
                self.logger.error(f"Capture cycle failed: {e}")
            finally:
                self._stop.set()
                mailbox.close()

        self._thread = threading.Thread(target=_worker, name="frame-pacer", daemon=True)
        self._thread.start()
        return mailbox

    def raise_if_failed(self) -> None:
        if self.error is not None:
            raise self.error

    def join(self, timeout: float | None = None) -> None:
        """Stop the background worker, wait for it and surface its failure."""
        self.stop()
        if self._thread is not None:
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._thread = None
        self.raise_if_failed()
