"""One long-lived event loop for synchronous callers such as WSGI views."""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventLoopThread:
    """Runs a single asyncio loop in a daemon thread.

    Every coroutine and facade call submitted through :meth:`run` or
    :meth:`call` executes on that loop, so in-flight fetches shared by the
    orchestrator always belong to the loop that awaits them.
    """

    def __init__(self, name: str = "weathernow-loop") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "EventLoopThread":
        with self._lock:
            if self._thread is None:
                loop = asyncio.new_event_loop()
                ready = threading.Event()
                thread = threading.Thread(target=self._serve, args=(loop, ready), name=self.name, daemon=True)
                thread.start()
                ready.wait()
                self._loop, self._thread = loop, thread
                logger.debug("Started event loop thread %s", self.name)
        return self

    def run(self, awaitable: Awaitable[T], timeout: Optional[float] = None) -> T:
        """Block the calling thread until ``awaitable`` finishes on the loop."""
        if threading.current_thread() is self._thread:
            raise RuntimeError("EventLoopThread.run() called from its own loop")
        loop = self.start()._loop
        return asyncio.run_coroutine_threadsafe(_await(awaitable), loop).result(timeout)

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a synchronous ``func`` on the loop thread."""

        async def invoke() -> T:
            return func(*args, **kwargs)

        return self.run(invoke())

    def stop(self) -> None:
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join()
        logger.debug("Stopped event loop thread %s", self.name)

    @staticmethod
    def _serve(loop: asyncio.AbstractEventLoop, ready: threading.Event) -> None:
        asyncio.set_event_loop(loop)
        loop.call_soon(ready.set)
        try:
            loop.run_forever()
        finally:
            loop.close()


async def _await(awaitable: Awaitable[T]) -> T:
    return await awaitable


__all__ = ["EventLoopThread"]
