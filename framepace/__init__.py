"""Adaptive step/render frame scheduling for interactive runtimes."""

from framepace.runtime.bootstrap import create_frame_loop
from framepace.runtime.frame_loop import FrameLoop, FrameLoopMode

__all__ = ["FrameLoop", "FrameLoopMode", "create_frame_loop"]
