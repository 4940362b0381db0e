"""
Kinematic state snapshots and history buffers.

States are frozen: every step produces a new snapshot, so a value handed
to a renderer can never change underneath it.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Iterator, Optional, Union


@dataclass(frozen=True)
class ProjectileState:
    """Projectile state at one instant. ``y`` is height above ground."""

    t: float = 0.0
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    landed: bool = False

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["speed"] = self.speed
        return data


@dataclass(frozen=True)
class PendulumState:
    """
    Pendulum state at one instant.

    ``theta`` is measured from the vertical. Cartesian fields put the
    origin at the bob's lowest point, so ``y`` is the bob's height and the
    same apex/extent logic applies to both motion models.
    """

    t: float = 0.0
    theta: float = 0.0
    omega: float = 0.0
    alpha: float = 0.0  # Derived from theta/omega at step time
    length: float = 1.0

    # Pendulums never reach a terminal state
    landed = False

    @property
    def x(self) -> float:
        return self.length * math.sin(self.theta)

    @property
    def y(self) -> float:
        return self.length * (1.0 - math.cos(self.theta))

    @property
    def vx(self) -> float:
        return self.length * self.omega * math.cos(self.theta)

    @property
    def vy(self) -> float:
        return self.length * self.omega * math.sin(self.theta)

    @property
    def speed(self) -> float:
        return self.length * abs(self.omega)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.update(x=self.x, y=self.y, vx=self.vx, vy=self.vy, speed=self.speed)
        return data


State = Union[ProjectileState, PendulumState]


class History(Sequence):
    """
    Append-only sequence of states, optionally bounded.

    With a ``limit`` the oldest entries fall off the front (a sliding
    window); without one the buffer grows for the whole run.
    """

    def __init__(self, limit: Optional[int] = None):
        self._entries: deque[State] = deque(maxlen=limit)

    @property
    def limit(self) -> Optional[int]:
        return self._entries.maxlen

    def append(self, state: State) -> None:
        self._entries.append(state)

    @property
    def last(self) -> Optional[State]:
        return self._entries[-1] if self._entries else None

    def snapshot(self) -> tuple[State, ...]:
        """Value copy of the current contents."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[State]:
        return iter(self._entries)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return self.snapshot()[index]
        return self._entries[index]
