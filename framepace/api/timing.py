"""Host timing contracts consumed by the frame loop."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

TaskCallback = Callable[[], None]


class ClockPort(Protocol):
    """Monotonic time source in milliseconds."""

    def now_ms(self) -> float:
        """Return current monotonic time."""


class DisplaySyncPort(Protocol):
    """One-shot display-synchronized scheduling primitive."""

    nominal_interval_ms: float

    def request_frame(self, callback: TaskCallback) -> object:
        """Run `callback` once on the next display refresh."""

    def cancel_frame(self, handle: object) -> None:
        """Release a pending frame request; fired handles are ignored."""


class RepeatingTimerPort(Protocol):
    """Fixed-delay repeating timer primitive."""

    def set_interval(self, interval_ms: float, callback: TaskCallback) -> object:
        """Run `callback` every `interval_ms` until cleared."""

    def clear_interval(self, handle: object) -> None:
        """Stop a repeating timer."""


class ImmediatePort(Protocol):
    """Immediate one-shot rescheduling primitive."""

    def request_immediate(self, callback: TaskCallback) -> object:
        """Run `callback` once on the next host loop iteration."""

    def cancel_immediate(self, handle: object) -> None:
        """Release a pending immediate request; fired handles are ignored."""


@dataclass(frozen=True, slots=True)
class TimingBackend:
    """Timing capabilities selected by the embedding host."""

    name: str
    clock: ClockPort
    display: DisplaySyncPort
    timer: RepeatingTimerPort
    immediate: ImmediatePort


__all__ = [
    "ClockPort",
    "DisplaySyncPort",
    "ImmediatePort",
    "RepeatingTimerPort",
    "TaskCallback",
    "TimingBackend",
]
