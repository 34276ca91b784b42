"""Background thread that purges expired revocation entries on a fixed period."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from types import TracebackType

logger = logging.getLogger(__name__)


class SweepJob:
    """
    Run ``task`` every ``interval`` seconds on a daemon thread.

    The loop waits on a stop event, so :meth:`stop` interrupts a sleeping
    job immediately. An exception raised by ``task`` is logged and the next
    period runs as scheduled.

    :param task: Callable returning the number of removed entries.
    :param interval: Seconds between runs.
    :param name: Thread name, also used in log records.
    :param context_factory: Optional factory for a context entered around
        each run (e.g. ``app.app_context``).
    """

    def __init__(
        self,
        task: Callable[[], int],
        *,
        interval: float,
        name: str = "revocation-sweep",
        context_factory: Callable[[], AbstractContextManager] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._task = task
        self.interval = interval
        self.name = name
        self._context_factory = context_factory or nullcontext
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        """Start the background thread (no-op if already running)."""
        with self._lock:
            if self.is_running:
                logger.warning("sweep job already running", extra={"job": self.name})
                return
            # One event per thread: a run that outlives stop() still exits afterwards.
            self._stop = threading.Event()
            self._thread = threading.Thread(
                target=self._loop, args=(self._stop,), name=self.name, daemon=True
            )
            self._thread.start()
        logger.info("sweep job started", extra={"job": self.name, "interval": self.interval})

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the loop to exit and wait up to ``timeout`` seconds for it."""
        with self._lock:
            thread = self._thread
            self._stop.set()
            self._thread = None
        if thread is None:
            return
        thread.join(timeout)
        if thread.is_alive():
            logger.warning(
                "sweep job still finishing its current run", extra={"job": self.name}
            )
        else:
            logger.info("sweep job stopped", extra={"job": self.name})

    def run_once(self) -> int:
        """Run the task now on the calling thread and return its result."""
        with self._context_factory():
            return self._task()

    def _loop(self, stop: threading.Event) -> None:
        while not stop.wait(self.interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("sweep job run failed", extra={"job": self.name})

    def __enter__(self) -> SweepJob:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
