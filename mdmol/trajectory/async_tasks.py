"""Background task handles for trajectory loading and angle computation."""

import logging
import threading
from typing import Callable, Optional

from ..errors import InvariantError

logger = logging.getLogger(__name__)


class TaskHandle:
    """
    A restartable background worker with cooperative cancellation.

    The worker function receives the handle and is expected to poll
    :attr:`stop_requested` between units of work and to report progress
    through :attr:`fraction`. Exceptions escaping the worker are logged and
    leave ``fraction`` where the worker last put it.
    """

    def __init__(self, name: str):
        self.name = name
        self.fraction = 0.0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def start(self, work_fn: Callable[["TaskHandle"], None]) -> None:
        if self.running:
            raise InvariantError(f"Task {self.name} is already running")
        self._stop.clear()
        self.fraction = 0.0
        self._thread = threading.Thread(target=self._run, args=(work_fn,), name=self.name, daemon=True)
        self._thread.start()

    def _run(self, work_fn: Callable[["TaskHandle"], None]) -> None:
        try:
            work_fn(self)
        except Exception:
            logger.exception(f"Task {self.name} failed at {self.fraction:.0%}")

    def signal_stop(self) -> None:
        self._stop.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker exits. Returns False on timeout."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def signal_stop_and_wait(self, timeout: Optional[float] = None) -> bool:
        self.signal_stop()
        return self.wait(timeout)

    def __repr__(self) -> str:
        return f"TaskHandle(name={self.name!r}, running={self.running}, fraction={self.fraction:.2f})"
