"""Runtime collaborator contracts driven by the frame loop."""

from __future__ import annotations

from typing import Protocol


class RendererPort(Protocol):
    """Renderer surface used by the render cadence."""

    def draw(self) -> None:
        """Draw the current runtime state."""

    def render_interpolated_positions(self) -> None:
        """Draw positions extrapolated between two discrete steps."""


class ProfilerPort(Protocol):
    """Span profiler surface used around renderer draws."""

    def id_by_name(self, name: str) -> int:
        """Resolve a stable numeric id for a named span."""

    def start(self, span_id: int) -> None:
        """Open a span."""

    def stop(self) -> None:
        """Close the most recently opened span."""


class SteppableRuntime(Protocol):
    """Interpreter/simulation runtime advanced by the step cadence."""

    renderer: RendererPort | None
    profiler: ProfilerPort | None
    current_step_time: float
    screen_refresh_time: float

    def step(self) -> None:
        """Advance runtime state by one discrete step."""

    def is_surface_hidden(self) -> bool:
        """Return whether the display surface is currently hidden."""


__all__ = ["ProfilerPort", "RendererPort", "SteppableRuntime"]
