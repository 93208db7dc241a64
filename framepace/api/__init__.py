"""Public framepace API contracts."""

from framepace.api.logging import FrameLoopLoggingConfig
from framepace.api.runtime_port import ProfilerPort, RendererPort, SteppableRuntime
from framepace.api.timing import (
    ClockPort,
    DisplaySyncPort,
    ImmediatePort,
    RepeatingTimerPort,
    TaskCallback,
    TimingBackend,
)

__all__ = [
    "ClockPort",
    "DisplaySyncPort",
    "FrameLoopLoggingConfig",
    "ImmediatePort",
    "ProfilerPort",
    "RendererPort",
    "RepeatingTimerPort",
    "SteppableRuntime",
    "TaskCallback",
    "TimingBackend",
]
