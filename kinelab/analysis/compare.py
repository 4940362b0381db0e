"""Summary statistics and differences between two runs."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Sequence


@dataclass
class RunStats:
    """Final statistics extracted from a run's history."""

    range: float = 0.0
    max_height: float = 0.0
    flight_time: float = 0.0
    impact_speed: float = 0.0


@dataclass
class WorldDifference:
    """Percentage differences of world B relative to world A."""

    a: RunStats = field(default_factory=RunStats)
    b: RunStats = field(default_factory=RunStats)
    range_diff: float = 0.0
    height_diff: float = 0.0
    time_diff: float = 0.0
    impact_diff: float = 0.0


def pct_diff(a: float, b: float) -> float:
    """``(b - a) / |a|`` as a percentage, or 0 when ``a`` is effectively zero."""
    if abs(a) < 0.001:
        return 0.0
    return (b - a) / abs(a) * 100


def extract_stats(history: Sequence[Any]) -> RunStats:
    if not history or len(history) < 2:
        return RunStats()

    max_height = 0.0
    for state in history:
        if state.y > max_height:
            max_height = state.y

    last = history[-1]
    # A landed world keeps stepping in compare mode, so time the first landed sample
    flight_time = last.t
    for state in history:
        if getattr(state, "landed", False):
            flight_time = state.t
            break

    # Landing zeroes the velocity, so measure impact on the last airborne sample
    impact = last
    for state in reversed(history):
        if not getattr(state, "landed", False):
            impact = state
            break

    return RunStats(
        range=last.x,
        max_height=max_height,
        flight_time=flight_time,
        impact_speed=math.hypot(impact.vx, impact.vy),
    )


def compute_differences(history_a: Sequence[Any], history_b: Sequence[Any]) -> WorldDifference:
    a = extract_stats(history_a)
    b = extract_stats(history_b)
    return WorldDifference(
        a=a,
        b=b,
        range_diff=pct_diff(a.range, b.range),
        height_diff=pct_diff(a.max_height, b.max_height),
        time_diff=pct_diff(a.flight_time, b.flight_time),
        impact_diff=pct_diff(a.impact_speed, b.impact_speed),
    )
