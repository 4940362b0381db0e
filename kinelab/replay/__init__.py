"""Deterministic trajectory reconstruction for replay and export."""

from kinelab.replay.timeline import (
    TimelineBuilder,
    find_apex_frame,
    find_landing_frame,
    trajectory_extents,
)

__all__ = [
    "TimelineBuilder",
    "find_apex_frame",
    "find_landing_frame",
    "trajectory_extents",
]
