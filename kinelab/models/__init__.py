"""Parameter, state and trajectory models."""

from kinelab.models.params import (
    MotionModel,
    Params,
    PendulumParams,
    ProjectileParams,
    create_params,
    parse_motion_model,
    with_param,
)
from kinelab.models.state import History, PendulumState, ProjectileState, State
from kinelab.models.trajectory import Trajectory, TrajectoryFrame

__all__ = [
    # Parameters
    "MotionModel",
    "Params",
    "ProjectileParams",
    "PendulumParams",
    "create_params",
    "parse_motion_model",
    "with_param",
    # State
    "State",
    "ProjectileState",
    "PendulumState",
    "History",
    # Reconstruction
    "Trajectory",
    "TrajectoryFrame",
]
