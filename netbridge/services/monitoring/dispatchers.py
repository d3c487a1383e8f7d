"""
Dispatchers - Deliver observer calls on the host's designated context.

OS change callbacks arrive on whatever thread the platform uses. Dispatchers
hand each emission to one consistent context so an observer never runs
concurrently with itself and sees events in submission order.
"""
import asyncio
import queue
import threading
from typing import Callable, Optional

from loguru import logger

from netbridge.core.constants import DISPATCH_QUEUE_SIZE, THREAD_JOIN_TIMEOUT


class ImmediateDispatcher:
    """Runs calls inline on the submitting thread, serialized by a lock."""

    def __init__(self):
        self._lock = threading.RLock()

    def submit(self, fn: Callable[[], None]) -> None:
        with self._lock:
            _run_safely(fn)

    def close(self) -> None:
        pass


class SerialDispatcher:
    """
    Single worker thread draining a bounded FIFO queue.

    Usage:
        dispatcher = SerialDispatcher()
        dispatcher.submit(lambda: print("on worker"))
        dispatcher.close()
    """

    _STOP = object()

    def __init__(self, maxsize: int = DISPATCH_QUEUE_SIZE, name: str = "NetBridgeDispatcher"):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._worker, daemon=True, name=name)
        self._thread.start()

    def submit(self, fn: Callable[[], None]) -> None:
        with self._lock:
            if self._closed:
                logger.debug("[SerialDispatcher] Dropping call after close")
                return
        # Blocks when full so no emission is silently lost
        self._queue.put(fn)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(self._STOP)
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=THREAD_JOIN_TIMEOUT)
            if self._thread.is_alive():
                logger.warning("[SerialDispatcher] Worker did not stop cleanly")

    def _worker(self) -> None:
        while True:
            fn = self._queue.get()
            if fn is self._STOP:
                break
            _run_safely(fn)


class LoopDispatcher:
    """Hands calls to an asyncio event loop (e.g. the UI loop of the host)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def submit(self, fn: Callable[[], None]) -> None:
        if self._loop.is_closed():
            logger.debug("[LoopDispatcher] Skipping call: event loop is closed")
            return
        try:
            self._loop.call_soon_threadsafe(_run_safely, fn)
        except RuntimeError as e:
            logger.debug(f"[LoopDispatcher] Event loop rejected call: {e}")

    def close(self) -> None:
        pass


def _run_safely(fn: Callable[[], None]) -> None:
    try:
        fn()
    except Exception as e:
        fn_name = getattr(fn, "__name__", "lambda")
        logger.error(f"[Dispatcher] Observer call {fn_name} failed: {e}")
