from __future__ import annotations

import asyncio
import atexit
import functools
import threading
from typing import Any, Callable, Coroutine, Optional


class _BackgroundLoop:
    """
    Event loop running on a daemon thread.

    Synchronous callers (the Lambda runtime, tests, scripts) submit coroutines
    here instead of spinning up a new loop for every request, so clients
    bound to the loop (httpx, aioboto3) can be reused between invocations.
    """

    def __init__(self, name: str = "tachyon-bg-loop") -> None:
        self._name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()
        self._lock = threading.Lock()

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    def _target(self) -> None:
        loop = asyncio.new_event_loop()
        self._loop = loop
        asyncio.set_event_loop(loop)
        self._started.set()
        try:
            loop.run_forever()
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()
            self._loop = None

    def ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None or self._thread is None or not self._thread.is_alive():
                self._started.clear()
                self._thread = threading.Thread(target=self._target, name=self._name, daemon=True)
                self._thread.start()
                self._started.wait()
        assert self._loop is not None
        return self._loop

    def submit(self, coro: Coroutine[Any, Any, Any]):
        loop = self.ensure_started()
        return asyncio.run_coroutine_threadsafe(coro, loop)

    def run(self, coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
        return self.submit(coro).result(timeout=timeout)

    def stop(self) -> None:
        loop = self._loop
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._loop = None
        self._thread = None


_bg = _BackgroundLoop()
atexit.register(_bg.stop)


def run_sync(coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
    """Run a coroutine to completion on the background loop."""
    return _bg.run(coro, timeout=timeout)


def sync_compatible(async_fn: Callable[..., Coroutine[Any, Any, Any]]):
    """
    Let an async method be called from both sync and async code.

    Without a running loop the call blocks until the coroutine finishes on
    the background loop. Inside a foreign loop an awaitable is returned
    that waits on the background loop; on the background loop itself the
    coroutine is returned as-is.
    """

    @functools.wraps(async_fn)
    def wrapper(self, *args, **kwargs):
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            return _bg.run(async_fn(self, *args, **kwargs))
        if current_loop is _bg.loop:
            return async_fn(self, *args, **kwargs)

        async def _await_bg():
            fut = _bg.submit(async_fn(self, *args, **kwargs))
            return await asyncio.wrap_future(fut)

        return _await_bg()

    return wrapper
