"""Concrete timing backends selected by the embedding host."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from framepace.api.timing import TaskCallback, TimingBackend
from framepace.runtime.clock import MonotonicClock
from framepace.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable
from framepace.runtime.scheduler import VirtualScheduler

_LOG = logging.getLogger("framepace.timing")

DEFAULT_REFRESH_INTERVAL_MS = 1000.0 / 60.0


class VirtualClock:
    """Clock reading virtual time from a scheduler."""

    def __init__(self, scheduler: VirtualScheduler) -> None:
        self._scheduler = scheduler

    def now_ms(self) -> float:
        return self._scheduler.now_ms


class VirtualDisplay:
    """Simulated display refreshing every `refresh_interval_ms`."""

    def __init__(self, scheduler: VirtualScheduler, *, refresh_interval_ms: float) -> None:
        if refresh_interval_ms <= 0.0:
            raise ValueError("refresh_interval_ms must be > 0")
        self._scheduler = scheduler
        self.nominal_interval_ms = float(refresh_interval_ms)
        self.refresh_interval_ms = float(refresh_interval_ms)

    def request_frame(self, callback: TaskCallback) -> object:
        return self._scheduler.call_later(self.refresh_interval_ms, callback)

    def cancel_frame(self, handle: object) -> None:
        self._scheduler.cancel(int(handle))


class VirtualTimer:
    def __init__(self, scheduler: VirtualScheduler) -> None:
        self._scheduler = scheduler

    def set_interval(self, interval_ms: float, callback: TaskCallback) -> object:
        return self._scheduler.call_every(interval_ms, callback)

    def clear_interval(self, handle: object) -> None:
        self._scheduler.cancel(int(handle))


class VirtualImmediate:
    def __init__(self, scheduler: VirtualScheduler) -> None:
        self._scheduler = scheduler

    def request_immediate(self, callback: TaskCallback) -> object:
        return self._scheduler.call_later(0.0, callback)

    def cancel_immediate(self, handle: object) -> None:
        self._scheduler.cancel(int(handle))


def create_virtual_timing(
    scheduler: VirtualScheduler | None = None,
    *,
    refresh_interval_ms: float = DEFAULT_REFRESH_INTERVAL_MS,
) -> TimingBackend:
    """Timing backend over a deterministic virtual scheduler."""
    host = scheduler if scheduler is not None else VirtualScheduler()
    return TimingBackend(
        name="virtual",
        clock=VirtualClock(host),
        display=VirtualDisplay(host, refresh_interval_ms=refresh_interval_ms),
        timer=VirtualTimer(host),
        immediate=VirtualImmediate(host),
    )


class _LoopBinding:
    """Resolves the asyncio loop lazily so backends can be built before it runs."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop


class _AsyncioInterval:
    """Drift-corrected repeating timer over `loop.call_at`."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval_ms: float, callback: TaskCallback) -> None:
        if interval_ms <= 0.0:
            raise ValueError("interval_ms must be > 0")
        self._loop = loop
        self._interval_s = interval_ms / 1000.0
        self._callback = callback
        self._cancelled = False
        self._next_due = loop.time() + self._interval_s
        self._handle = loop.call_at(self._next_due, self._fire)

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._next_due += self._interval_s
        now = self._loop.time()
        if self._next_due <= now:
            # Missed ticks are dropped rather than replayed in a burst.
            self._next_due = now + self._interval_s
        self._handle = self._loop.call_at(self._next_due, self._fire)
        self._callback()


class AsyncioDisplayPolyfill:
    """Display sync emulated with `call_later` when no vsync source exists."""

    def __init__(self, binding: _LoopBinding, *, refresh_interval_ms: float) -> None:
        if refresh_interval_ms <= 0.0:
            raise ValueError("refresh_interval_ms must be > 0")
        self._binding = binding
        self.nominal_interval_ms = float(refresh_interval_ms)

    def request_frame(self, callback: TaskCallback) -> object:
        return self._binding.loop.call_later(self.nominal_interval_ms / 1000.0, callback)

    def cancel_frame(self, handle: object) -> None:
        handle.cancel()


class AsyncioTimer:
    def __init__(self, binding: _LoopBinding) -> None:
        self._binding = binding

    def set_interval(self, interval_ms: float, callback: TaskCallback) -> object:
        return _AsyncioInterval(self._binding.loop, interval_ms, callback)

    def clear_interval(self, handle: object) -> None:
        handle.cancel()


class AsyncioImmediate:
    def __init__(self, binding: _LoopBinding) -> None:
        self._binding = binding

    def request_immediate(self, callback: TaskCallback) -> object:
        return self._binding.loop.call_soon(callback)

    def cancel_immediate(self, handle: object) -> None:
        handle.cancel()


def create_asyncio_timing(
    loop: asyncio.AbstractEventLoop | None = None,
    *,
    refresh_interval_ms: float = DEFAULT_REFRESH_INTERVAL_MS,
) -> TimingBackend:
    """Timing backend over an asyncio event loop with a polyfilled display."""
    binding = _LoopBinding(loop)
    return TimingBackend(
        name="asyncio",
        clock=MonotonicClock(),
        display=AsyncioDisplayPolyfill(binding, refresh_interval_ms=refresh_interval_ms),
        timer=AsyncioTimer(binding),
        immediate=AsyncioImmediate(binding),
    )


class RenderCanvasDisplay:
    """Display sync driven by a rendercanvas canvas draw cycle.

    The canvas draw function is installed once; each frame request asks the
    canvas for another draw and pending callbacks run inside that draw.
    """

    def __init__(self, canvas: Any, *, nominal_interval_ms: float) -> None:
        request_draw = getattr(canvas, "request_draw", None)
        if not callable(request_draw):
            raise TypeError("canvas does not expose request_draw()")
        if nominal_interval_ms <= 0.0:
            raise ValueError("nominal_interval_ms must be > 0")
        self._canvas = canvas
        self.nominal_interval_ms = float(nominal_interval_ms)
        self._pending: dict[int, TaskCallback] = {}
        self._next_token = 1
        request_draw(self._on_draw)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: TaskCallback) -> object:
        token = self._next_token
        self._next_token += 1
        self._pending[token] = callback
        self._canvas.request_draw()
        return token

    def cancel_frame(self, handle: object) -> None:
        self._pending.pop(int(handle), None)

    def _on_draw(self) -> None:
        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback()


def create_rendercanvas_canvas(
    *,
    width: int = 960,
    height: int = 540,
    title: str = "framepace",
    max_fps: float = 240.0,
    vsync: bool = True,
) -> Any:
    """Create a rendercanvas canvas in on-demand mode."""
    try:
        import rendercanvas.auto as rc_auto
    except ImportError as exc:
        raise RuntimeError(
            "Render canvas backend unavailable. Install framepace[window] and a desktop backend such as glfw."
        ) from exc
    canvas_cls = getattr(rc_auto, "RenderCanvas", None)
    if canvas_cls is None:
        raise RuntimeError("rendercanvas.auto did not expose RenderCanvas.")
    try:
        return canvas_cls(
            size=(int(width), int(height)),
            title=title,
            update_mode="ondemand",
            min_fps=0.0,
            max_fps=float(max_fps),
            vsync=bool(vsync),
        )
    except RECOVERABLE_RUNTIME_ERRORS:
        log_recoverable(_LOG, "rendercanvas_options_rejected falling back to defaults")
        return canvas_cls(size=(int(width), int(height)), title=title)


def create_rendercanvas_timing(
    canvas: Any | None = None,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
    refresh_interval_ms: float = DEFAULT_REFRESH_INTERVAL_MS,
) -> TimingBackend:
    """Timing backend using a canvas for display sync and asyncio for timers."""
    target = canvas if canvas is not None else create_rendercanvas_canvas()
    binding = _LoopBinding(loop)
    return TimingBackend(
        name="rendercanvas",
        clock=MonotonicClock(),
        display=RenderCanvasDisplay(target, nominal_interval_ms=refresh_interval_ms),
        timer=AsyncioTimer(binding),
        immediate=AsyncioImmediate(binding),
    )
