"""Derived analytics over histories and trajectories."""

from kinelab.analysis.compare import RunStats, WorldDifference, compute_differences, extract_stats, pct_diff
from kinelab.analysis.moments import (
    Moment,
    MomentType,
    check_near_moment,
    detect_moments,
    detect_swing_extremes,
)

__all__ = [
    "Moment",
    "MomentType",
    "detect_moments",
    "detect_swing_extremes",
    "check_near_moment",
    "RunStats",
    "WorldDifference",
    "extract_stats",
    "pct_diff",
    "compute_differences",
]
