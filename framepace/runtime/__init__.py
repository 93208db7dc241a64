"""Framepace runtime modules."""

from framepace.runtime.bootstrap import create_frame_loop, create_timing_backend
from framepace.runtime.clock import ManualClock, MonotonicClock
from framepace.runtime.config import FrameLoopConfig, get_frame_loop_config, load_frame_loop_config
from framepace.runtime.errors import InvalidFramerateError
from framepace.runtime.frame_loop import DRAW_PROFILER_SPAN, FrameLoop, FrameLoopMode
from framepace.runtime.logging import setup_framepace_logging
from framepace.runtime.metrics import (
    FrameLoopMetrics,
    MetricsCollector,
    NoopMetricsCollector,
    create_metrics_collector,
)
from framepace.runtime.scheduled_task import (
    ScheduledTask,
    ScheduleStrategy,
    display_sync_strategy,
    fixed_delay_strategy,
    immediate_strategy,
)
from framepace.runtime.scheduler import VirtualScheduler
from framepace.runtime.timing_backends import (
    create_asyncio_timing,
    create_rendercanvas_timing,
    create_virtual_timing,
)

__all__ = [
    "DRAW_PROFILER_SPAN",
    "FrameLoop",
    "FrameLoopConfig",
    "FrameLoopMetrics",
    "FrameLoopMode",
    "InvalidFramerateError",
    "ManualClock",
    "MetricsCollector",
    "MonotonicClock",
    "NoopMetricsCollector",
    "ScheduleStrategy",
    "ScheduledTask",
    "VirtualScheduler",
    "create_asyncio_timing",
    "create_frame_loop",
    "create_metrics_collector",
    "create_rendercanvas_timing",
    "create_timing_backend",
    "create_virtual_timing",
    "display_sync_strategy",
    "fixed_delay_strategy",
    "get_frame_loop_config",
    "immediate_strategy",
    "load_frame_loop_config",
    "setup_framepace_logging",
]
