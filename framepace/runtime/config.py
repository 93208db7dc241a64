"""Centralized frame loop configuration sourced from environment."""

from __future__ import annotations

import math
import os
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Mapping

TIMING_BACKENDS: tuple[str, ...] = ("asyncio", "virtual", "rendercanvas")
LOG_FORMATS: tuple[str, ...] = ("text", "json")


@dataclass(frozen=True, slots=True)
class FrameLoopConfig:
    framerate: float = 30.0
    interpolation: bool = False
    high_precision_threshold_fps: float = 250.0
    display_refresh_hz: float = 60.0
    timing_backend: str = "asyncio"
    metrics_enabled: bool = False
    metrics_window: int = 60
    log_level: str = "INFO"
    log_format: str = "text"

    @property
    def display_interval_ms(self) -> float:
        return 1000.0 / self.display_refresh_hz


_FRAME_LOOP_CONFIG: ContextVar[FrameLoopConfig | None] = ContextVar("framepace_config", default=None)


def _raw(name: str, *, env: Mapping[str, str] | None = None) -> str | None:
    value = os.getenv(name) if env is None else env.get(name)
    return None if value is None else str(value)


def _flag(name: str, default: bool, *, env: Mapping[str, str] | None = None) -> bool:
    raw = _raw(name, env=env)
    if raw is None:
        return bool(default)
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _int(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    raw = _raw(name, env=env)
    if raw is None:
        value = int(default)
    else:
        try:
            value = int(raw.strip())
        except ValueError:
            value = int(default)
    if minimum is None:
        return value
    return max(int(minimum), value)


def _float(
    name: str,
    default: float,
    *,
    minimum: float | None = None,
    env: Mapping[str, str] | None = None,
) -> float:
    raw = _raw(name, env=env)
    if raw is None:
        value = float(default)
    else:
        try:
            value = float(raw.strip())
        except ValueError:
            value = float(default)
    if not math.isfinite(value):
        value = float(default)
    if minimum is None:
        return value
    return max(float(minimum), value)


def _text(name: str, default: str, *, env: Mapping[str, str] | None = None) -> str:
    raw = _raw(name, env=env)
    if raw is None:
        return str(default)
    value = raw.strip()
    return value if value else str(default)


def _normalize_timing_backend(raw: str, fallback: str) -> str:
    value = str(raw).strip().lower()
    if value in {"rendercanvas", "rendercanvas_glfw", "glfw"}:
        return "rendercanvas"
    if value in {"virtual", "headless"}:
        return "virtual"
    if value not in TIMING_BACKENDS:
        return fallback
    return value


def _normalize_log_format(raw: str, fallback: str) -> str:
    value = str(raw).strip().lower()
    return value if value in LOG_FORMATS else fallback


def resolve_log_level_name(default: str = "INFO", *, env: Mapping[str, str] | None = None) -> str:
    """Resolve log level with framepace-prefixed override."""
    value = _raw("FRAMEPACE_LOG_LEVEL", env=env)
    if value is None:
        value = _raw("LOG_LEVEL", env=env) or default
    return value.strip().upper()


def load_frame_loop_config(*, env: Mapping[str, str] | None = None) -> FrameLoopConfig:
    defaults = FrameLoopConfig()
    framerate = _float("FRAMEPACE_FRAMERATE", defaults.framerate, env=env)
    if framerate < 0.0:
        framerate = defaults.framerate
    return FrameLoopConfig(
        framerate=framerate,
        interpolation=_flag("FRAMEPACE_INTERPOLATION", defaults.interpolation, env=env),
        high_precision_threshold_fps=_float(
            "FRAMEPACE_HIGH_PRECISION_THRESHOLD_FPS",
            defaults.high_precision_threshold_fps,
            minimum=1.0,
            env=env,
        ),
        display_refresh_hz=_float(
            "FRAMEPACE_DISPLAY_REFRESH_HZ", defaults.display_refresh_hz, minimum=1.0, env=env
        ),
        timing_backend=_normalize_timing_backend(
            _text("FRAMEPACE_TIMING_BACKEND", defaults.timing_backend, env=env),
            defaults.timing_backend,
        ),
        metrics_enabled=_flag("FRAMEPACE_METRICS", defaults.metrics_enabled, env=env),
        metrics_window=_int("FRAMEPACE_METRICS_WINDOW", defaults.metrics_window, minimum=1, env=env),
        log_level=resolve_log_level_name(defaults.log_level, env=env),
        log_format=_normalize_log_format(
            _text("FRAMEPACE_LOG_FORMAT", defaults.log_format, env=env),
            defaults.log_format,
        ),
    )


def get_frame_loop_config() -> FrameLoopConfig:
    """Return the active config, loading it from the environment on first use."""
    config = _FRAME_LOOP_CONFIG.get()
    if config is None:
        config = load_frame_loop_config()
        _FRAME_LOOP_CONFIG.set(config)
    return config


def set_frame_loop_config(config: FrameLoopConfig) -> None:
    _FRAME_LOOP_CONFIG.set(config)


def reset_frame_loop_config() -> None:
    _FRAME_LOOP_CONFIG.set(None)
