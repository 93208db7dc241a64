"""Shared frame loop exception policy helpers."""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import TypeAlias

RecoverableRuntimeErrors: TypeAlias = tuple[type[BaseException], ...]
# Bounded fallback set for host/backend compatibility paths.
RECOVERABLE_RUNTIME_ERRORS: RecoverableRuntimeErrors = (
    RuntimeError,
    OSError,
    TypeError,
    AttributeError,
    ImportError,
)


class InvalidFramerateError(ValueError):
    """Raised for step rates that cannot produce a timer interval."""

    def __init__(self, value: object) -> None:
        super().__init__(f"framerate must be a finite number >= 0, got {value!r}")
        self.value = value


def validate_framerate(value: object) -> float:
    """Return `value` as float or raise `InvalidFramerateError`."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidFramerateError(value)
    fps = float(value)
    if not math.isfinite(fps) or fps < 0.0:
        raise InvalidFramerateError(value)
    return fps


def log_recoverable(
    logger: logging.Logger,
    message: str,
    *,
    level: int = logging.DEBUG,
) -> None:
    """Emit structured observability for tolerated recoverable exceptions."""
    logger.log(level, message, exc_info=True)
