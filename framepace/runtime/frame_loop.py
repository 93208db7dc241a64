"""Adaptive step/render frame loop.

The loop owns the task topology for three mutually exclusive modes:

- display-locked (`framerate == 0`): one combined display-synced task that
  steps then renders on every refresh, recalibrating the step interval to the
  measured refresh interval;
- timer-paced (`0 < framerate <= threshold`): a fixed-delay timer for steps and
  an independent display-synced render task;
- high-precision (`framerate > threshold`): an immediate rescheduler polls for
  steps behind an elapsed-time guard, render task as in timer-paced mode.

Configuration changes restart a running loop so no stale task survives.
"""

from __future__ import annotations

import logging
from enum import Enum

from framepace.api.runtime_port import ProfilerPort, RendererPort, SteppableRuntime
from framepace.api.timing import TimingBackend
from framepace.runtime.errors import validate_framerate
from framepace.runtime.metrics import FrameLoopMetrics, MetricsCollector, NoopMetricsCollector
from framepace.runtime.scheduled_task import (
    ScheduledTask,
    display_sync_strategy,
    fixed_delay_strategy,
    immediate_strategy,
)

_LOG = logging.getLogger("framepace.runtime")

DRAW_PROFILER_SPAN = "renderer.draw"
DEFAULT_FRAMERATE = 30.0
HIGH_PRECISION_THRESHOLD_FPS = 250.0


class FrameLoopMode(str, Enum):
    DISPLAY_LOCKED = "display_locked"
    TIMER_PACED = "timer_paced"
    HIGH_PRECISION = "high_precision"


class FrameLoop:
    """Drives a runtime's step and render cadences over host timing primitives."""

    def __init__(
        self,
        runtime: SteppableRuntime,
        *,
        timing: TimingBackend,
        framerate: float = DEFAULT_FRAMERATE,
        interpolation: bool = False,
        high_precision_threshold_fps: float = HIGH_PRECISION_THRESHOLD_FPS,
        metrics: MetricsCollector | NoopMetricsCollector | None = None,
    ) -> None:
        if high_precision_threshold_fps <= 0.0:
            raise ValueError("high_precision_threshold_fps must be > 0")
        self.runtime = runtime
        self._timing = timing
        self._clock = timing.clock
        self._high_precision_threshold_fps = float(high_precision_threshold_fps)
        self._metrics = metrics if metrics is not None else NoopMetricsCollector()
        self._running = False
        self._mode: FrameLoopMode | None = None
        self._framerate = DEFAULT_FRAMERATE
        self._interpolation = False
        self._current_step_time = 1000.0 / DEFAULT_FRAMERATE
        self._screen_refresh_time = 0.0
        self._last_step_time = 0.0
        self._last_render_time = 0.0
        self._combined_task: ScheduledTask | None = None
        self._step_task: ScheduledTask | None = None
        self._render_task: ScheduledTask | None = None
        self._draw_profiler: ProfilerPort | None = None
        self._draw_profiler_id = -1
        self.set_framerate(framerate)
        self.set_interpolation(interpolation)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def framerate(self) -> float:
        return self._framerate

    @property
    def interpolation(self) -> bool:
        return self._interpolation

    @property
    def mode(self) -> FrameLoopMode | None:
        return self._mode

    @property
    def current_step_time(self) -> float:
        return self._current_step_time

    @property
    def screen_refresh_time(self) -> float:
        return self._screen_refresh_time

    @property
    def last_step_time(self) -> float:
        return self._last_step_time

    @property
    def last_render_time(self) -> float:
        return self._last_render_time

    @property
    def timing_backend_name(self) -> str:
        return self._timing.name

    @property
    def active_task_count(self) -> int:
        tasks = (self._combined_task, self._step_task, self._render_task)
        return sum(1 for task in tasks if task is not None and not task.cancelled)

    def metrics_snapshot(self) -> FrameLoopMetrics:
        return self._metrics.snapshot()

    def set_framerate(self, fps: float) -> None:
        """Set target steps per second; 0 ties stepping to the display refresh."""
        self._framerate = validate_framerate(fps)
        self._restart()

    def set_interpolation(self, interpolation: bool) -> None:
        self._interpolation = bool(interpolation)
        self._restart()

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        now = self._clock.now_ms()
        self._last_step_time = now
        self._last_render_time = now
        display = display_sync_strategy(self._timing.display)
        if self._framerate == 0:
            self._mode = FrameLoopMode.DISPLAY_LOCKED
            # Recalibrated from measured refresh intervals once rendering starts.
            self._set_current_step_time(self._timing.display.nominal_interval_ms)
            self._combined_task = ScheduledTask.start(self._combined_tick, display)
        else:
            step_interval_ms = 1000.0 / self._framerate
            self._set_current_step_time(step_interval_ms)
            self._render_task = ScheduledTask.start(self.render_callback, display)
            if self._framerate > self._high_precision_threshold_fps:
                self._mode = FrameLoopMode.HIGH_PRECISION
                self._step_task = ScheduledTask.start(
                    self.immediate_step_callback,
                    immediate_strategy(self._timing.immediate),
                )
            else:
                self._mode = FrameLoopMode.TIMER_PACED
                self._step_task = ScheduledTask.start(
                    self.step_callback,
                    fixed_delay_strategy(self._timing.timer, step_interval_ms),
                )
        _LOG.debug(
            "frame_loop_start mode=%s framerate=%s interpolation=%s backend=%s",
            self._mode.value,
            self._framerate,
            self._interpolation,
            self._timing.name,
        )

    def stop(self) -> None:
        was_running = self._running
        self._running = False
        for task in (self._combined_task, self._step_task, self._render_task):
            if task is not None:
                task.cancel()
        self._combined_task = None
        self._step_task = None
        self._render_task = None
        self._mode = None
        if was_running:
            _LOG.debug("frame_loop_stop framerate=%s", self._framerate)

    def _restart(self) -> None:
        if not self._running:
            return
        self._metrics.record_restart()
        _LOG.debug(
            "frame_loop_restart framerate=%s interpolation=%s",
            self._framerate,
            self._interpolation,
        )
        self.stop()
        self.start()

    def step_callback(self) -> None:
        self._last_step_time = self._clock.now_ms()
        self._metrics.record_step()
        self.runtime.step()

    def immediate_step_callback(self) -> None:
        now = self._clock.now_ms()
        if now - self._last_step_time < self._current_step_time:
            self._metrics.record_poll_skip()
            return
        self._last_step_time = now
        self._metrics.record_step()
        self.runtime.step()

    def render_callback(self) -> None:
        runtime = self.runtime
        renderer = runtime.renderer
        if renderer is None:
            return
        now = self._clock.now_ms()
        elapsed = now - self._last_render_time
        if self._interpolation and self._framerate != 0:
            hidden = runtime.is_surface_hidden()
            if not hidden:
                renderer.render_interpolated_positions()
            self._metrics.record_interpolated(hidden=hidden)
        elif elapsed >= self._current_step_time:
            self._draw(renderer)
        self._screen_refresh_time = elapsed
        runtime.screen_refresh_time = elapsed
        self._metrics.record_render(elapsed)
        if self._framerate == 0 and elapsed > 0.0:
            self._set_current_step_time(elapsed)
        self._last_render_time = now

    def _combined_tick(self) -> None:
        self.step_callback()
        self.render_callback()

    def _draw(self, renderer: RendererPort) -> None:
        profiler = self.runtime.profiler
        if profiler is not None:
            profiler.start(self._resolve_draw_profiler_id(profiler))
        try:
            hidden = self.runtime.is_surface_hidden()
            if not hidden:
                renderer.draw()
            self._metrics.record_draw(hidden=hidden)
        finally:
            if profiler is not None:
                profiler.stop()

    def _resolve_draw_profiler_id(self, profiler: ProfilerPort) -> int:
        if self._draw_profiler is not profiler or self._draw_profiler_id == -1:
            self._draw_profiler_id = profiler.id_by_name(DRAW_PROFILER_SPAN)
            self._draw_profiler = profiler
        return self._draw_profiler_id

    def _set_current_step_time(self, value: float) -> None:
        self._current_step_time = value
        self.runtime.current_step_time = value
