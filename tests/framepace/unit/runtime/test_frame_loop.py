from __future__ import annotations

import math

import pytest

from framepace.api.timing import TimingBackend
from framepace.runtime.clock import ManualClock
from framepace.runtime.errors import InvalidFramerateError
from framepace.runtime.frame_loop import FrameLoop, FrameLoopMode
from framepace.runtime.metrics import MetricsCollector
from tests.framepace.conftest import FakeRuntime


def test_frame_loop_defaults_match_constructor_setters(runtime, timing) -> None:
    loop = FrameLoop(runtime, timing=timing)
    assert loop.framerate == 30.0
    assert loop.interpolation is False
    assert loop.running is False
    assert loop.mode is None
    assert loop.active_task_count == 0


def test_display_locked_mode_steps_strictly_before_render(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=0)
    loop.start()

    scheduler.run_for(160.0, tick_ms=1.0)

    assert loop.mode is FrameLoopMode.DISPLAY_LOCKED
    assert loop.active_task_count == 1
    assert scheduler.queued_task_count == 1
    assert runtime.log == ["step", "draw"] * 10


def test_display_locked_mode_recalibrates_step_time_to_refresh(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=0)
    loop.start()
    assert loop.current_step_time == 16.0

    scheduler.run_for(16.0, tick_ms=1.0)
    timing.display.refresh_interval_ms = 20.0
    # The frame requested at t=16 still uses the old interval.
    scheduler.run_for(36.0, tick_ms=1.0)

    assert loop.screen_refresh_time == 20.0
    assert loop.current_step_time == 20.0
    assert runtime.current_step_time == 20.0
    assert runtime.screen_refresh_time == 20.0


def test_display_locked_mode_ignores_interpolation_flag(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=0, interpolation=True)
    loop.start()

    scheduler.run_for(48.0, tick_ms=1.0)

    assert runtime.renderer.interpolated_count == 0
    assert runtime.renderer.draw_count == 3


def test_timer_paced_mode_step_count_tracks_framerate(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=30)
    loop.start()

    scheduler.run_for(1000.0, tick_ms=1.0)

    assert loop.mode is FrameLoopMode.TIMER_PACED
    assert abs(runtime.step_count - 1000.0 / (1000.0 / 30.0)) <= 1
    assert loop.current_step_time == pytest.approx(1000.0 / 30.0)
    assert runtime.current_step_time == pytest.approx(1000.0 / 30.0)
    assert loop.active_task_count == 2
    assert scheduler.queued_task_count == 2


def test_timer_paced_render_draws_when_refresh_reaches_step_interval(runtime, scheduler) -> None:
    from framepace.runtime.timing_backends import create_virtual_timing

    slow_display = create_virtual_timing(scheduler, refresh_interval_ms=20.0)
    loop = FrameLoop(runtime, timing=slow_display, framerate=60)
    loop.start()

    scheduler.run_for(100.0, tick_ms=1.0)

    assert runtime.renderer.draw_count == 5
    assert loop.screen_refresh_time == 20.0
    assert loop.current_step_time == pytest.approx(1000.0 / 60.0)


def test_timer_paced_render_skips_draw_inside_step_interval(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=30)
    loop.start()

    scheduler.run_for(160.0, tick_ms=1.0)

    assert runtime.renderer.draw_count == 0
    assert loop.last_render_time == 160.0
    assert loop.screen_refresh_time == 16.0


def test_high_precision_mode_never_bypasses_poll_guard(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=300)
    loop.start()

    scheduler.run_for(1000.0, tick_ms=0.5)

    assert loop.mode is FrameLoopMode.HIGH_PRECISION
    assert 250 <= runtime.step_count <= 300
    gaps = [b - a for a, b in zip(runtime.step_times, runtime.step_times[1:])]
    assert all(gap >= loop.current_step_time for gap in gaps)
    assert loop.active_task_count == 2


def test_high_precision_threshold_is_inclusive_for_timer_mode(runtime, timing) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=250)
    loop.start()
    assert loop.mode is FrameLoopMode.TIMER_PACED
    loop.set_framerate(250.5)
    assert loop.mode is FrameLoopMode.HIGH_PRECISION


def test_set_framerate_while_running_never_leaks_tasks(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=0)
    loop.start()
    for fps in (30, 300, 0, 10, 300, 60, 0, 0, 500):
        loop.set_framerate(fps)
        scheduler.run_for(50.0, tick_ms=1.0)
        expected = 1 if fps == 0 else 2
        assert loop.active_task_count == expected
        assert scheduler.queued_task_count == expected


def test_switching_between_timer_and_poller_keeps_stepping(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=10)
    loop.start()
    scheduler.run_for(200.0, tick_ms=1.0)
    assert runtime.step_count == 2

    loop.set_framerate(300)
    assert loop.mode is FrameLoopMode.HIGH_PRECISION
    scheduler.run_for(100.0, tick_ms=0.5)
    polled_steps = runtime.step_count - 2
    assert polled_steps >= 25

    loop.set_framerate(10)
    assert loop.mode is FrameLoopMode.TIMER_PACED
    before = runtime.step_count
    scheduler.run_for(100.0, tick_ms=1.0)
    assert runtime.step_count - before == 1
    assert scheduler.queued_task_count == 2


def test_set_interpolation_restarts_running_loop(runtime, timing, scheduler) -> None:
    metrics = MetricsCollector()
    loop = FrameLoop(runtime, timing=timing, framerate=30, metrics=metrics)
    loop.start()
    loop.set_interpolation(True)

    scheduler.run_for(64.0, tick_ms=1.0)

    assert loop.interpolation is True
    assert runtime.renderer.interpolated_count == 4
    assert runtime.renderer.draw_count == 0
    assert loop.metrics_snapshot().restart_count == 1
    assert scheduler.queued_task_count == 2


def test_setters_do_not_start_a_stopped_loop(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing)
    loop.set_framerate(0)
    loop.set_interpolation(True)
    assert loop.running is False
    assert scheduler.queued_task_count == 0


def test_start_twice_does_not_duplicate_tasks(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=30)
    loop.start()
    loop.start()
    assert scheduler.queued_task_count == 2


def test_stop_twice_is_safe(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=0)
    loop.start()
    scheduler.advance(16.0)

    loop.stop()
    assert loop.running is False
    loop.stop()
    assert loop.running is False
    assert loop.mode is None
    assert loop.active_task_count == 0
    assert scheduler.queued_task_count == 0

    steps = runtime.step_count
    scheduler.run_for(100.0, tick_ms=1.0)
    assert runtime.step_count == steps


def test_stop_before_start_is_safe(runtime, timing) -> None:
    loop = FrameLoop(runtime, timing=timing)
    loop.stop()
    assert loop.running is False


def test_render_skips_draw_when_surface_hidden(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=0)
    runtime.hidden = True
    loop.start()

    scheduler.advance(16.0)

    assert runtime.renderer.draw_count == 0
    assert runtime.step_count == 1
    assert loop.last_render_time == 16.0


def test_interpolated_render_skipped_when_surface_hidden(runtime, timing, scheduler) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=30, interpolation=True)
    runtime.hidden = True
    loop.start()

    scheduler.run_for(32.0, tick_ms=1.0)

    assert runtime.renderer.interpolated_count == 0
    assert runtime.renderer.draw_count == 0
    assert loop.last_render_time == 32.0
    assert loop.screen_refresh_time == 16.0


def test_render_is_noop_without_renderer(timing, scheduler) -> None:
    runtime = FakeRuntime(with_renderer=False)
    loop = FrameLoop(runtime, timing=timing, framerate=0)
    loop.start()

    scheduler.run_for(48.0, tick_ms=1.0)

    assert runtime.step_count == 3
    assert loop.last_render_time == 0.0
    assert loop.current_step_time == 16.0


def test_plain_step_records_time_at_callback_start(timing) -> None:
    clock = ManualClock(start_ms=100.0)

    class SlowRuntime(FakeRuntime):
        def step(self) -> None:
            super().step()
            clock.advance(5.0)

    runtime = SlowRuntime()
    manual_timing = TimingBackend(
        name="manual",
        clock=clock,
        display=timing.display,
        timer=timing.timer,
        immediate=timing.immediate,
    )
    loop = FrameLoop(runtime, timing=manual_timing, framerate=50)

    loop.step_callback()
    loop.step_callback()

    assert runtime.step_count == 2
    assert loop.last_step_time == 105.0
    assert clock.now_ms() == 110.0


def test_profiler_brackets_draw_and_caches_span_id(timing, scheduler) -> None:
    from tests.framepace.conftest import FakeProfiler

    profiler = FakeProfiler()
    runtime = FakeRuntime(profiler=profiler)
    loop = FrameLoop(runtime, timing=timing, framerate=0)
    loop.start()

    scheduler.run_for(48.0, tick_ms=1.0)
    loop.set_framerate(0)
    scheduler.run_for(16.0, tick_ms=1.0)

    assert profiler.lookups == 1
    assert profiler.calls[0] == ("id_by_name", "renderer.draw")
    assert profiler.calls[1:] == [("start", 7), ("stop", None)] * 4
    assert runtime.renderer.draw_count == 4


def test_profiler_span_is_closed_when_draw_raises(timing, scheduler) -> None:
    from tests.framepace.conftest import FakeProfiler

    profiler = FakeProfiler()
    runtime = FakeRuntime(profiler=profiler)

    def explode() -> None:
        raise RuntimeError("draw failed")

    runtime.renderer.draw = explode
    loop = FrameLoop(runtime, timing=timing, framerate=0)
    loop.start()

    with pytest.raises(RuntimeError):
        scheduler.advance(16.0)
    assert profiler.calls[-1] == ("stop", None)


@pytest.mark.parametrize("value", [-1, -0.5, math.nan, math.inf, True, "30", None])
def test_set_framerate_rejects_invalid_values(runtime, timing, value) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=20)
    with pytest.raises(InvalidFramerateError):
        loop.set_framerate(value)
    assert loop.framerate == 20.0


def test_constructor_rejects_invalid_framerate(runtime, timing) -> None:
    with pytest.raises(ValueError):
        FrameLoop(runtime, timing=timing, framerate=-30)
    with pytest.raises(ValueError):
        FrameLoop(runtime, timing=timing, high_precision_threshold_fps=0.0)


def test_non_integer_framerate_is_accepted(runtime, timing) -> None:
    loop = FrameLoop(runtime, timing=timing, framerate=29.97)
    loop.start()
    assert loop.current_step_time == pytest.approx(1000.0 / 29.97)


def test_metrics_collector_tracks_loop_activity(runtime, timing, scheduler) -> None:
    metrics = MetricsCollector(window_size=4)
    loop = FrameLoop(runtime, timing=timing, framerate=0, metrics=metrics)
    loop.start()

    scheduler.run_for(64.0, tick_ms=1.0)
    runtime.hidden = True
    scheduler.run_for(16.0, tick_ms=1.0)

    snap = loop.metrics_snapshot()
    assert snap.step_count == 5
    assert snap.render_count == 5
    assert snap.draw_count == 4
    assert snap.hidden_skip_count == 1
    assert snap.rolling_refresh_ms == 16.0
    assert snap.rolling_fps == pytest.approx(62.5)
