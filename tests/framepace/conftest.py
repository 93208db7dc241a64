from __future__ import annotations

from collections.abc import Callable

import pytest

from framepace.api.timing import TimingBackend
from framepace.runtime.scheduler import VirtualScheduler
from framepace.runtime.timing_backends import create_virtual_timing


class FakeRenderer:
    def __init__(self, log: list[str]) -> None:
        self._log = log
        self.draw_count = 0
        self.interpolated_count = 0

    def draw(self) -> None:
        self.draw_count += 1
        self._log.append("draw")

    def render_interpolated_positions(self) -> None:
        self.interpolated_count += 1
        self._log.append("interpolate")


class FakeProfiler:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []
        self.lookups = 0

    def id_by_name(self, name: str) -> int:
        self.lookups += 1
        self.calls.append(("id_by_name", name))
        return 7

    def start(self, span_id: int) -> None:
        self.calls.append(("start", span_id))

    def stop(self) -> None:
        self.calls.append(("stop", None))


class FakeRuntime:
    def __init__(
        self,
        *,
        with_renderer: bool = True,
        profiler: FakeProfiler | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.log: list[str] = []
        self.renderer: FakeRenderer | None = FakeRenderer(self.log) if with_renderer else None
        self.profiler = profiler
        self.current_step_time = 0.0
        self.screen_refresh_time = 0.0
        self.hidden = False
        self.step_count = 0
        self.step_times: list[float] = []
        self._clock = clock

    def step(self) -> None:
        self.step_count += 1
        self.log.append("step")
        if self._clock is not None:
            self.step_times.append(self._clock())

    def is_surface_hidden(self) -> bool:
        return self.hidden


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture
def timing(scheduler: VirtualScheduler) -> TimingBackend:
    # Binary-exact refresh interval keeps elapsed comparisons deterministic.
    return create_virtual_timing(scheduler, refresh_interval_ms=16.0)


@pytest.fixture
def runtime(scheduler: VirtualScheduler) -> FakeRuntime:
    return FakeRuntime(clock=lambda: scheduler.now_ms)
