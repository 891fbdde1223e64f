"""Per-request deadline and cancellation."""

import logging
import signal
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator

from kikishell.errors import RequestCancelled

logger = logging.getLogger(__name__)


class RequestScope:
    """Deadline and cancel flag shared by every call of one user request.

    The timeout covers the whole request: a reduction pass with many
    chunks spends the same budget as a single direct call.
    """

    def __init__(self, timeout: float | None = None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.deadline = clock() + timeout if timeout and timeout > 0 else None
        self._cancelled = threading.Event()
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self, reason: str = "cancelled") -> bool:
        """Cancel the scope; returns True only for the first call."""
        if self._cancelled.is_set():
            return False
        self.reason = reason
        self._cancelled.set()
        logger.debug(f"Request cancelled: {reason}")
        return True

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self.deadline is None:
            return None
        return max(self.deadline - self._clock(), 0.0)

    def check(self) -> None:
        """Raise RequestCancelled if the scope is cancelled or expired."""
        if self.cancelled:
            raise RequestCancelled(self.reason)
        if self.deadline is not None and self._clock() >= self.deadline:
            self.cancel("request timed out")
            raise RequestCancelled(self.reason)


@contextmanager
def interrupt_scope(timeout: float | None = None) -> Iterator[RequestScope]:
    """Open a RequestScope that Ctrl-C (or SIGTERM) cancels.

    The first signal cancels the scope and aborts the in-flight call by
    raising RequestCancelled from the handler; later signals during the
    same request are ignored. Previous handlers are restored on exit.
    Signal handlers can only be installed from the main thread; elsewhere
    the scope only enforces the deadline.
    """
    scope = RequestScope(timeout)
    if threading.current_thread() is not threading.main_thread():
        yield scope
        return

    def _handler(signum, frame):
        if scope.cancel(f"interrupted ({signal.Signals(signum).name})"):
            raise RequestCancelled(scope.reason)

    previous = {sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield scope
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
