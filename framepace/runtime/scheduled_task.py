"""Cancellable repeating tasks over host timing primitives."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from framepace.api.timing import (
    DisplaySyncPort,
    ImmediatePort,
    RepeatingTimerPort,
    TaskCallback,
)


@dataclass(frozen=True, slots=True)
class ScheduleStrategy:
    """How a task registers and releases its platform timer.

    `repeating=False` marks a one-shot primitive: the task re-registers on
    every firing before running its callback. `repeating=True` marks a
    primitive that repeats by itself.
    """

    name: str
    request: Callable[[TaskCallback], object]
    release: Callable[[object], None]
    repeating: bool = False


def display_sync_strategy(display: DisplaySyncPort) -> ScheduleStrategy:
    return ScheduleStrategy(
        name="display_sync",
        request=display.request_frame,
        release=display.cancel_frame,
    )


def fixed_delay_strategy(timer: RepeatingTimerPort, interval_ms: float) -> ScheduleStrategy:
    if interval_ms <= 0.0:
        raise ValueError("interval_ms must be > 0")
    return ScheduleStrategy(
        name="fixed_delay",
        request=lambda callback: timer.set_interval(interval_ms, callback),
        release=timer.clear_interval,
        repeating=True,
    )


def immediate_strategy(immediate: ImmediatePort) -> ScheduleStrategy:
    return ScheduleStrategy(
        name="immediate",
        request=immediate.request_immediate,
        release=immediate.cancel_immediate,
    )


@dataclass(slots=True, eq=False)
class ScheduledTask:
    """Started task handle with idempotent cancellation."""

    strategy: ScheduleStrategy
    callback: TaskCallback
    handle: object | None = None
    cancelled: bool = False
    fire_count: int = field(default=0)

    @classmethod
    def start(cls, callback: TaskCallback, strategy: ScheduleStrategy) -> ScheduledTask:
        """Create a task and schedule its first firing."""
        task = cls(strategy=strategy, callback=callback)
        task.handle = strategy.request(task._fire)
        return task

    @property
    def strategy_name(self) -> str:
        return self.strategy.name

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self.strategy.release(self.handle)

    def _fire(self) -> None:
        if self.cancelled:
            return
        if not self.strategy.repeating:
            self.handle = self.strategy.request(self._fire)
        self.fire_count += 1
        self.callback()
