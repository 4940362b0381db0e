"""
Closed-form summaries of a launch or swing.

These are the drag-free textbook results: they size the reconstruction
window and give the reference values the numerical paths are checked
against.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

from kinelab.errors import UnsupportedMotionModelError
from kinelab.models.params import Params, PendulumParams, ProjectileParams
from kinelab.models.state import State


@dataclass
class ProjectileMetrics:
    """Drag-free flight characteristics."""

    vx: float
    vy: float
    time_to_apex: float
    max_height: float

    # None when the launch never reaches the ground (negative discriminant)
    time_of_flight: Optional[float] = None
    range: Optional[float] = None


@dataclass
class PendulumMetrics:
    """Small-angle swing characteristics."""

    period: float
    frequency: float
    angular_frequency: float
    max_speed: float  # At the bottom of the swing, exact for any amplitude


@dataclass
class Energy:
    kinetic: float
    potential: float

    @property
    def total(self) -> float:
        return self.kinetic + self.potential


def time_of_flight(params: ProjectileParams) -> Optional[float]:
    """
    Time until the drag-free path returns to the ground.

    Solves ``h0 + vy*t - g*t^2/2 = 0`` and takes the larger root.
    Returns None if there is no real root, in which case callers must
    supply their own time budget.
    """
    _, vy = params.initial_velocity
    g = params.gravity
    a = -0.5 * g
    b = vy
    c = params.height

    discriminant = b * b - 4 * a * c
    if discriminant < 0:
        return None

    root = math.sqrt(discriminant)
    t1 = (-b + root) / (2 * a)
    t2 = (-b - root) / (2 * a)
    return max(t1, t2, 0.0)


def projectile_metrics(params: ProjectileParams) -> ProjectileMetrics:
    vx, vy = params.initial_velocity
    g = params.gravity

    time_to_apex = max(0.0, vy / g)
    max_height = params.height + vy * time_to_apex - 0.5 * g * time_to_apex**2

    flight = time_of_flight(params)
    return ProjectileMetrics(
        vx=vx,
        vy=vy,
        time_to_apex=time_to_apex,
        max_height=max_height,
        time_of_flight=flight,
        range=vx * flight if flight is not None else None,
    )


def pendulum_metrics(params: PendulumParams) -> PendulumMetrics:
    period = 2 * math.pi * math.sqrt(params.length / params.gravity)
    drop = params.length * (1 - math.cos(params.amplitude_rad))
    return PendulumMetrics(
        period=period,
        frequency=1 / period,
        angular_frequency=math.sqrt(params.gravity / params.length),
        max_speed=math.sqrt(2 * params.gravity * drop),
    )


def metrics_for(params: Params) -> Union[ProjectileMetrics, PendulumMetrics]:
    """Closed-form summary for any supported parameter set."""
    if isinstance(params, ProjectileParams):
        return projectile_metrics(params)
    if isinstance(params, PendulumParams):
        return pendulum_metrics(params)
    raise UnsupportedMotionModelError(getattr(params, "motion", type(params).__name__))


def compute_energy(state: State, gravity: float, mass: float = 1.0) -> Energy:
    """Kinetic and potential energy, with height measured from the lowest point."""
    speed = state.speed
    return Energy(
        kinetic=0.5 * mass * speed * speed,
        potential=mass * gravity * max(0.0, state.y),
    )
