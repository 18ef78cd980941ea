"""
Background event loop for the viewer.

Streamlit runs each script rerun on its own thread, while the render caches,
engines and progress writes all need to live on one event loop. A single
daemon thread runs that loop for the whole process; callers submit
coroutines to it and optionally wait for the result.
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def bound_to_other_loop(task: asyncio.Future) -> bool:
    """True if a pending task belongs to a loop other than the running one."""
    return not task.done() and task.get_loop() is not asyncio.get_running_loop()


class BackgroundLoop:
    """An asyncio event loop running forever on a daemon thread."""

    def __init__(self, name: str = "apollo-loop"):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()
        logger.info(f"Started background event loop '{name}'")

    def _run(self):
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and self._loop.is_running()

    def submit(self, coro: Coroutine[Any, Any, T]) -> concurrent.futures.Future:
        """Schedule `coro` without waiting. Returns a concurrent Future."""
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def run(self, coro: Coroutine[Any, Any, T], timeout: Optional[float] = None) -> T:
        """Run `coro` and block for its result; its exceptions propagate."""
        return self.submit(coro).result(timeout)

    def wait(self, coro: Coroutine[Any, Any, T], timeout: float) -> Optional[T]:
        """
        Run `coro`, waiting at most `timeout` seconds.

        Returns None on timeout; the coroutine keeps running and its result
        lands in whatever cache it writes to.
        """
        future = self.submit(coro)
        try:
            return future.result(timeout)
        except TimeoutError:
            return None

    def stop(self, timeout: float = 5.0):
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)


_background: Optional[BackgroundLoop] = None
_background_lock = threading.Lock()


def get_background_loop() -> BackgroundLoop:
    """Process-wide background loop, started on first use."""
    global _background
    with _background_lock:
        if _background is None or not _background._thread.is_alive():
            _background = BackgroundLoop()
        return _background
