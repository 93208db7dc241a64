"""Frame loop clock primitives."""

from __future__ import annotations

from collections.abc import Callable
from time import perf_counter


class MonotonicClock:
    """Monotonic clock reporting milliseconds."""

    def __init__(self, *, time_source: Callable[[], float] | None = None) -> None:
        # time_source reports seconds, like time.perf_counter
        self._time_source = time_source or perf_counter

    def now_ms(self) -> float:
        return self._time_source() * 1000.0


class ManualClock:
    """Externally driven clock for headless hosts and tests."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now_ms = float(start_ms)

    def now_ms(self) -> float:
        return self._now_ms

    def advance(self, delta_ms: float) -> float:
        """Move the clock forward and return the new time."""
        if delta_ms < 0.0:
            raise ValueError("delta_ms must be >= 0")
        self._now_ms += float(delta_ms)
        return self._now_ms

    def set(self, now_ms: float) -> None:
        if now_ms < self._now_ms:
            raise ValueError("now_ms cannot move backwards")
        self._now_ms = float(now_ms)
