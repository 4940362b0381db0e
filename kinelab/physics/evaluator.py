"""
Random-access state reconstruction.

``state_at_time`` answers "where is the body at absolute time t" without
touching any live world. Drag-free projectiles use the closed form;
everything else is re-integrated from t=0 at a fine fixed step with the
same acceleration model as the live steppers. Every call starts from
scratch, so calls may come in any order.
"""

from __future__ import annotations

from typing import Callable, Optional

from kinelab.config import DEFAULT_CONFIG, SimulationConfig
from kinelab.errors import UnsupportedMotionModelError
from kinelab.models.params import MotionModel, Params, PendulumParams, ProjectileParams
from kinelab.models.state import PendulumState, ProjectileState, State
from kinelab.physics.metrics import time_of_flight
from kinelab.physics.steppers import pendulum_acceleration, projectile_acceleration


def _check_time(t: float) -> None:
    if t < 0:
        raise ValueError(f"Time must be non-negative, got {t}")


def projectile_state_at_time(
    t: float,
    params: ProjectileParams,
    config: Optional[SimulationConfig] = None,
) -> ProjectileState:
    """Projectile state at time ``t``; resting on the ground once landed."""
    _check_time(t)
    config = config or DEFAULT_CONFIG
    vx0, vy0 = params.initial_velocity
    g = params.gravity

    if params.drag <= 0:
        flight = time_of_flight(params)
        if flight is not None and t > 0 and t >= flight:
            return ProjectileState(t=t, x=vx0 * flight, y=0.0, vx=0.0, vy=0.0, landed=True)

        y = params.height + vy0 * t - 0.5 * g * t * t
        return ProjectileState(t=t, x=vx0 * t, y=max(0.0, y), vx=vx0, vy=vy0 - g * t)

    x, y, vx, vy = 0.0, params.height, vx0, vy0
    elapsed = 0.0
    while elapsed < t:
        step = min(config.evaluator_dt, t - elapsed)
        ax, ay = projectile_acceleration(vx, vy, g, params.drag, config.speed_epsilon)
        vx += ax * step
        vy += ay * step
        x += vx * step
        y += vy * step
        elapsed += step

        if y <= 0 and elapsed > config.settle_time:
            return ProjectileState(t=t, x=x, y=0.0, vx=0.0, vy=0.0, landed=True)

    # Ground contact inside the settle window is not a landing, but height stays non-negative
    return ProjectileState(t=t, x=x, y=max(0.0, y), vx=vx, vy=vy)


def pendulum_state_at_time(
    t: float,
    params: PendulumParams,
    config: Optional[SimulationConfig] = None,
) -> PendulumState:
    """Pendulum state at time ``t`` by fine-step Euler-Cromer integration."""
    _check_time(t)
    config = config or DEFAULT_CONFIG
    g, length, damping = params.gravity, params.length, params.damping

    theta = params.amplitude_rad
    omega = 0.0
    elapsed = 0.0
    while elapsed < t:
        step = min(config.evaluator_dt, t - elapsed)
        alpha = pendulum_acceleration(theta, omega, g, length, damping)
        omega += alpha * step
        theta += omega * step
        elapsed += step

    return PendulumState(
        t=t,
        theta=theta,
        omega=omega,
        alpha=pendulum_acceleration(theta, omega, g, length, damping),
        length=length,
    )


_EVALUATORS: dict[MotionModel, Callable[..., State]] = {
    MotionModel.PROJECTILE: projectile_state_at_time,
    MotionModel.PENDULUM: pendulum_state_at_time,
}


def state_at_time(t: float, params: Params, config: Optional[SimulationConfig] = None) -> State:
    """
    Evaluate any supported motion model at absolute time ``t``.

    Raises:
        UnsupportedMotionModelError: if no evaluator is mapped to the
            parameters' motion tag.
    """
    motion = getattr(params, "motion", None)
    evaluator = _EVALUATORS.get(motion) if isinstance(motion, MotionModel) else None
    if evaluator is None:
        raise UnsupportedMotionModelError(motion if motion is not None else type(params).__name__)
    return evaluator(t, params, config)
