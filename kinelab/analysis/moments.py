"""
Key-moment detection over a history or trajectory.

Detection is a stateless re-derivation: the same sequence always yields
the same moments, and nothing is stored back on the states scanned.
Anything with ``t``, ``x``, ``y`` and ``vy`` attributes can be scanned,
which covers live histories and reconstructed trajectory frames alike.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

# Height thresholds for impact detection, metres
AIRBORNE_HEIGHT = 0.1
GROUND_HEIGHT = 0.01


class MomentType(str, Enum):
    APEX = "apex"
    IMPACT = "impact"
    EXTREME = "extreme"  # Pendulum turning point


@dataclass(frozen=True)
class Moment:
    """A key moment found in a sequence of states."""

    type: MomentType
    index: int
    time: float
    state: Any
    label: str = ""
    description: str = ""


def detect_moments(history: Sequence[Any]) -> list[Moment]:
    """
    Find apex and impact moments.

    Apex fires on the first positive-to-non-positive transition of the
    vertical velocity; only the first is reported. Impact fires whenever
    the height drops from above 0.1 m to at most 0.01 m, after at least
    two earlier samples. Sequences shorter than three samples yield
    nothing.
    """
    if not history or len(history) < 3:
        return []

    moments = []
    apex_found = False

    for i in range(1, len(history)):
        prev = history[i - 1]
        cur = history[i]

        if not apex_found and prev.vy > 0 and cur.vy <= 0:
            apex_found = True
            moments.append(Moment(
                type=MomentType.APEX,
                index=i,
                time=cur.t,
                state=cur,
                label="APEX",
                description="Vertical velocity = 0. Maximum height reached.",
            ))

        if i > 2 and prev.y > AIRBORNE_HEIGHT and cur.y <= GROUND_HEIGHT:
            moments.append(Moment(
                type=MomentType.IMPACT,
                index=i,
                time=cur.t,
                state=cur,
                label="IMPACT",
                description=f"Projectile lands at {cur.x:.1f}m range.",
            ))

    return moments


def detect_swing_extremes(history: Sequence[Any]) -> list[Moment]:
    """Pendulum turning points: every sign change of the angular velocity."""
    if not history or len(history) < 3:
        return []

    moments = []
    for i in range(1, len(history)):
        prev = history[i - 1]
        cur = history[i]
        if (prev.omega > 0 and cur.omega <= 0) or (prev.omega < 0 and cur.omega >= 0):
            moments.append(Moment(
                type=MomentType.EXTREME,
                index=i,
                time=cur.t,
                state=cur,
                label="TURN",
                description=f"Swing reverses at {math.degrees(cur.theta):.1f} degrees.",
            ))
    return moments


def check_near_moment(moments: Sequence[Moment], current_index: int, tolerance: int = 3) -> Optional[Moment]:
    """Return the first moment within ``tolerance`` samples of ``current_index``."""
    for moment in moments:
        if abs(current_index - moment.index) <= tolerance:
            return moment
    return None
