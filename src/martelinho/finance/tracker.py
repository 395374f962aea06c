"""Stale-response protection for dashboard requests.

Each request takes a generation number from a monotonic counter. A result
is applied only if its generation is still the latest one issued; results
of superseded requests are dropped when they arrive.
"""
from __future__ import annotations

import logging
import threading
from typing import Generic, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class ReportRequestTracker(Generic[T]):
    """Tag requests with generations and keep only the latest result."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generation = 0
        self._result: T | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def result(self) -> T | None:
        return self._result

    def begin(self) -> int:
        """Start a new request and return its generation number."""
        with self._lock:
            self._generation += 1
            return self._generation

    def cancel(self) -> None:
        """Supersede any in-flight request without starting a new one."""
        with self._lock:
            self._generation += 1
            self._result = None

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def apply(self, generation: int, result: T) -> bool:
        """Store `result` if `generation` is still current.

        Returns:
            True if the result was applied, False if it was discarded.
        """
        with self._lock:
            if generation != self._generation:
                log.info(
                    "Discarding stale result of request #%d (latest is #%d)",
                    generation,
                    self._generation,
                )
                return False
            self._result = result
            return True
