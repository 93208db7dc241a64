"""Named span profiler usable as a frame loop runtime profiler."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from framepace.api.timing import ClockPort
from framepace.runtime.clock import MonotonicClock

_LOG = logging.getLogger("framepace.profiling")


@dataclass(frozen=True, slots=True)
class ProfilingSpan:
    span_id: int
    name: str
    start_ms: float
    end_ms: float
    duration_ms: float
    depth: int


@dataclass(frozen=True, slots=True)
class _OpenSpan:
    span_id: int
    start_ms: float


class _SpanLog:
    """Newest closed spans plus per-name duration totals over exactly those spans."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("span_capacity must be > 0")
        self._spans: deque[ProfilingSpan] = deque(maxlen=capacity)
        self._totals_ms: dict[str, float] = {}
        self._counts: dict[str, int] = {}

    def record(self, span: ProfilingSpan) -> None:
        if len(self._spans) == self._spans.maxlen:
            self._forget(self._spans[0])
        self._spans.append(span)
        self._totals_ms[span.name] = self._totals_ms.get(span.name, 0.0) + span.duration_ms
        self._counts[span.name] = self._counts.get(span.name, 0) + 1

    def spans(self, limit: int | None = None) -> list[ProfilingSpan]:
        items = list(self._spans)
        if limit is None or limit >= len(items):
            return items
        return items[len(items) - max(0, int(limit)) :]

    def totals_ms(self) -> dict[str, float]:
        return dict(self._totals_ms)

    def _forget(self, span: ProfilingSpan) -> None:
        remaining = self._counts[span.name] - 1
        if remaining == 0:
            del self._counts[span.name]
            del self._totals_ms[span.name]
            return
        self._counts[span.name] = remaining
        self._totals_ms[span.name] -= span.duration_ms


class SpanProfiler:
    """Collect span timings keyed by stable numeric ids."""

    def __init__(self, *, clock: ClockPort | None = None, span_capacity: int = 5_000) -> None:
        self._clock = clock or MonotonicClock()
        self._span_log = _SpanLog(int(span_capacity))
        self._ids: dict[str, int] = {}
        self._names: list[str] = []
        self._open: list[_OpenSpan] = []

    @property
    def open_depth(self) -> int:
        return len(self._open)

    def id_by_name(self, name: str) -> int:
        span_id = self._ids.get(name)
        if span_id is None:
            span_id = len(self._names)
            self._ids[name] = span_id
            self._names.append(name)
        return span_id

    def name_by_id(self, span_id: int) -> str:
        return self._names[span_id]

    def start(self, span_id: int) -> None:
        if not 0 <= span_id < len(self._names):
            raise ValueError(f"unknown span id: {span_id}")
        self._open.append(_OpenSpan(span_id=span_id, start_ms=self._clock.now_ms()))

    def stop(self) -> ProfilingSpan | None:
        if not self._open:
            _LOG.debug("profiler_stop_without_open_span")
            return None
        opened = self._open.pop()
        end_ms = self._clock.now_ms()
        span = ProfilingSpan(
            span_id=opened.span_id,
            name=self._names[opened.span_id],
            start_ms=opened.start_ms,
            end_ms=end_ms,
            duration_ms=end_ms - opened.start_ms,
            depth=len(self._open),
        )
        self._span_log.record(span)
        return span

    def snapshot(self, *, limit: int | None = None) -> list[ProfilingSpan]:
        return self._span_log.spans(limit)

    def top_spans_ms(self, limit: int = 5) -> list[tuple[str, float]]:
        """Return span names ranked by total duration over the retained spans."""
        ranked = sorted(self._span_log.totals_ms().items(), key=lambda item: item[1], reverse=True)
        return ranked[: max(0, int(limit))]
