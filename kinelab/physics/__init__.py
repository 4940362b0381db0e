"""
Physics kernels for live stepping and offline reconstruction.

Steppers advance a running state incrementally; the evaluator is a pure
function of absolute time. The two are kept as separate types because
one is incremental and the other random-access.
"""

from kinelab.physics.evaluator import pendulum_state_at_time, projectile_state_at_time, state_at_time
from kinelab.physics.metrics import (
    Energy,
    PendulumMetrics,
    ProjectileMetrics,
    compute_energy,
    metrics_for,
    pendulum_metrics,
    projectile_metrics,
    time_of_flight,
)
from kinelab.physics.registry import STEPPERS, get_stepper
from kinelab.physics.steppers import PendulumStepper, ProjectileStepper, Stepper

__all__ = [
    # Steppers
    "Stepper",
    "ProjectileStepper",
    "PendulumStepper",
    "STEPPERS",
    "get_stepper",
    # Evaluator
    "state_at_time",
    "projectile_state_at_time",
    "pendulum_state_at_time",
    # Metrics
    "ProjectileMetrics",
    "PendulumMetrics",
    "Energy",
    "projectile_metrics",
    "pendulum_metrics",
    "metrics_for",
    "time_of_flight",
    "compute_energy",
]
