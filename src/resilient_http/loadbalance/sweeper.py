"""Owned, cancelable periodic task running on a daemon thread."""

import threading
from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)


class PeriodicSweeper:
    """
    Calls ``callback`` every ``interval_seconds`` until stopped.

    The loop waits on a stop event rather than sleeping, so ``stop()`` takes
    effect immediately instead of after the current interval. A failing
    callback is logged and the loop keeps running.

    Example:
        >>> sweeper = PeriodicSweeper(cache.sweep, interval_seconds=10.0)
        >>> sweeper.start()
        >>> # ... later ...
        >>> sweeper.stop()
    """

    def __init__(self, callback: Callable[[], object], interval_seconds: float, name: str = "failed-endpoint-sweeper"):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._callback = callback
        self.interval_seconds = interval_seconds
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self.tick_count = 0

    def start(self) -> None:
        with self._lock:
            if self._thread is not None:
                logger.warning("Sweeper already started", sweeper=self.name)
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._loop, daemon=True, name=self.name)
            self._thread.start()
        logger.debug("Sweeper started", sweeper=self.name, interval_seconds=self.interval_seconds)

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            self.tick_count += 1
            try:
                self._callback()
            except Exception:
                logger.exception("Sweep failed", sweeper=self.name)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop and wait for the thread to exit. Safe to call repeatedly."""
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Sweeper thread did not stop cleanly", sweeper=self.name)
        logger.debug("Sweeper stopped", sweeper=self.name, ticks=self.tick_count)

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()
