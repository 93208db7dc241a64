"""Frame loop composition from configuration."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from framepace.api.runtime_port import SteppableRuntime
from framepace.api.timing import TimingBackend
from framepace.runtime.config import FrameLoopConfig, get_frame_loop_config
from framepace.runtime.frame_loop import FrameLoop
from framepace.runtime.logging import setup_framepace_logging
from framepace.runtime.metrics import create_metrics_collector
from framepace.runtime.scheduler import VirtualScheduler
from framepace.runtime.timing_backends import (
    create_asyncio_timing,
    create_rendercanvas_timing,
    create_virtual_timing,
)

_LOG = logging.getLogger("framepace.runtime")


def create_timing_backend(
    config: FrameLoopConfig,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
    canvas: Any | None = None,
    scheduler: VirtualScheduler | None = None,
) -> TimingBackend:
    """Build the timing backend named by `config.timing_backend`."""
    backend = config.timing_backend
    if backend == "virtual":
        return create_virtual_timing(scheduler, refresh_interval_ms=config.display_interval_ms)
    if backend == "rendercanvas":
        return create_rendercanvas_timing(
            canvas,
            loop=loop,
            refresh_interval_ms=config.display_interval_ms,
        )
    if backend == "asyncio":
        return create_asyncio_timing(loop, refresh_interval_ms=config.display_interval_ms)
    raise ValueError(f"unknown timing backend: {backend!r}")


def create_frame_loop(
    runtime: SteppableRuntime,
    *,
    config: FrameLoopConfig | None = None,
    timing: TimingBackend | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
    canvas: Any | None = None,
    scheduler: VirtualScheduler | None = None,
) -> FrameLoop:
    """Create a stopped frame loop for `runtime` from configuration."""
    cfg = config or get_frame_loop_config()
    setup_framepace_logging(cfg)
    backend = timing or create_timing_backend(cfg, loop=loop, canvas=canvas, scheduler=scheduler)
    frame_loop = FrameLoop(
        runtime,
        timing=backend,
        framerate=cfg.framerate,
        interpolation=cfg.interpolation,
        high_precision_threshold_fps=cfg.high_precision_threshold_fps,
        metrics=create_metrics_collector(enabled=cfg.metrics_enabled, window_size=cfg.metrics_window),
    )
    _LOG.info(
        "frame_loop_created backend=%s framerate=%s interpolation=%s metrics=%s",
        backend.name,
        cfg.framerate,
        cfg.interpolation,
        cfg.metrics_enabled,
    )
    return frame_loop
