"""Frame loop metrics collector for lightweight diagnostics."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FrameLoopMetrics:
    """Read-only snapshot of frame loop activity."""

    step_count: int
    poll_skip_count: int
    render_count: int
    draw_count: int
    hidden_skip_count: int
    interpolated_count: int
    restart_count: int
    last_refresh_ms: float
    rolling_refresh_ms: float
    rolling_fps: float


_EMPTY = FrameLoopMetrics(
    step_count=0,
    poll_skip_count=0,
    render_count=0,
    draw_count=0,
    hidden_skip_count=0,
    interpolated_count=0,
    restart_count=0,
    last_refresh_ms=0.0,
    rolling_refresh_ms=0.0,
    rolling_fps=0.0,
)


class NoopMetricsCollector:
    """No-op collector for zero-impact disabled mode."""

    def record_step(self) -> None:
        return None

    def record_poll_skip(self) -> None:
        return None

    def record_render(self, refresh_ms: float) -> None:
        _ = refresh_ms

    def record_draw(self, *, hidden: bool) -> None:
        _ = hidden

    def record_interpolated(self, *, hidden: bool) -> None:
        _ = hidden

    def record_restart(self) -> None:
        return None

    def snapshot(self) -> FrameLoopMetrics:
        return _EMPTY


class MetricsCollector:
    """Small in-memory rolling metrics collector."""

    def __init__(self, *, window_size: int = 60) -> None:
        self._window_size = max(1, int(window_size))
        self._refresh_window: deque[float] = deque(maxlen=self._window_size)
        self._step_count = 0
        self._poll_skip_count = 0
        self._render_count = 0
        self._draw_count = 0
        self._hidden_skip_count = 0
        self._interpolated_count = 0
        self._restart_count = 0
        self._last_refresh_ms = 0.0

    def record_step(self) -> None:
        self._step_count += 1

    def record_poll_skip(self) -> None:
        self._poll_skip_count += 1

    def record_render(self, refresh_ms: float) -> None:
        refresh = float(refresh_ms)
        self._render_count += 1
        self._last_refresh_ms = refresh
        self._refresh_window.append(refresh)

    def record_draw(self, *, hidden: bool) -> None:
        if hidden:
            self._hidden_skip_count += 1
            return
        self._draw_count += 1

    def record_interpolated(self, *, hidden: bool) -> None:
        if hidden:
            self._hidden_skip_count += 1
            return
        self._interpolated_count += 1

    def record_restart(self) -> None:
        self._restart_count += 1

    def snapshot(self) -> FrameLoopMetrics:
        window = self._refresh_window
        rolling_refresh = (sum(window) / len(window)) if window else 0.0
        rolling_fps = (1000.0 / rolling_refresh) if rolling_refresh > 0.0 else 0.0
        return FrameLoopMetrics(
            step_count=self._step_count,
            poll_skip_count=self._poll_skip_count,
            render_count=self._render_count,
            draw_count=self._draw_count,
            hidden_skip_count=self._hidden_skip_count,
            interpolated_count=self._interpolated_count,
            restart_count=self._restart_count,
            last_refresh_ms=self._last_refresh_ms,
            rolling_refresh_ms=rolling_refresh,
            rolling_fps=rolling_fps,
        )


def create_metrics_collector(*, enabled: bool, window_size: int = 60) -> MetricsCollector | NoopMetricsCollector:
    """Factory returning enabled collector or no-op implementation."""
    if not enabled:
        return NoopMetricsCollector()
    return MetricsCollector(window_size=window_size)
