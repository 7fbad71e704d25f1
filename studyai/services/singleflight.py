"""
Single-flight guard: at most one in-flight call per key.

Used around summary generation so that concurrent requests for the same
document share one model call instead of racing to write the cached summary.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Callable, Dict, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class SingleFlight:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: Dict[str, Future] = {}

    def pending(self, key: str) -> bool:
        with self._lock:
            return key in self._calls

    def do(self, key: str, fn: Callable[[], T]) -> T:
        """Run ``fn`` unless a call for ``key`` is already running; then wait for it."""
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if leader:
                call = Future()
                self._calls[key] = call

        if not leader:
            logger.info("single_flight_joined", key=key)
            return call.result()

        try:
            result = fn()
        except BaseException as e:
            call.set_exception(e)
            raise
        else:
            call.set_result(result)
            return result
        finally:
            with self._lock:
                self._calls.pop(key, None)
