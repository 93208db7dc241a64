"""Public framepace logging API."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FrameLoopLoggingConfig:
    """Console logging configuration for frame loop hosts."""

    level_name: str = "INFO"
    format_name: str = "text"  # text|json
