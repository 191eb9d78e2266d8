"""Per-mount simulation state and the frame loop that drives it."""

from auramap.runtime.context import PendingChange, SimulationContext
from auramap.runtime.loop import FrameSink, RenderLoop

__all__ = [
    "PendingChange",
    "SimulationContext",
    "FrameSink",
    "RenderLoop",
]
