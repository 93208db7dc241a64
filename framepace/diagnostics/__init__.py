"""Framepace diagnostics helpers."""

from framepace.diagnostics.profiling import ProfilingSpan, SpanProfiler

__all__ = ["ProfilingSpan", "SpanProfiler"]
