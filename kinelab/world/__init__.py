"""
Live simulation worlds.

A World owns one stepper; the DualWorldScheduler runs two of them in
lockstep for side-by-side comparison. Both are driven by a frame source
at a fixed logical timestep.
"""

from kinelab.world.loop import AsyncioFrameSource, FrameDriver, FrameSource, ManualFrameSource
from kinelab.world.scheduler import DEFAULT_LINKED, CompareSnapshot, DualWorldScheduler
from kinelab.world.world import EventTracker, SimulationEvent, World, WorldSnapshot

__all__ = [
    "World",
    "WorldSnapshot",
    "SimulationEvent",
    "EventTracker",
    "DualWorldScheduler",
    "CompareSnapshot",
    "DEFAULT_LINKED",
    "FrameSource",
    "ManualFrameSource",
    "AsyncioFrameSource",
    "FrameDriver",
]
