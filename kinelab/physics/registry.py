"""Mapping from motion model tags to stepper kernels."""

from __future__ import annotations

from typing import Optional, Union

from kinelab.config import SimulationConfig
from kinelab.errors import UnsupportedMotionModelError
from kinelab.models.params import MotionModel, parse_motion_model
from kinelab.physics.steppers import PendulumStepper, ProjectileStepper, Stepper

STEPPERS: dict[MotionModel, type[Stepper]] = {
    MotionModel.PROJECTILE: ProjectileStepper,
    MotionModel.PENDULUM: PendulumStepper,
}


def get_stepper(
    motion: Union[str, MotionModel],
    config: Optional[SimulationConfig] = None,
) -> Stepper:
    """
    Create a stepper for a motion model.

    Unknown tags are a programming error and are never defaulted to the
    projectile kernel.
    """
    model = parse_motion_model(motion)
    stepper_class = STEPPERS.get(model)
    if stepper_class is None:
        raise UnsupportedMotionModelError(motion)
    return stepper_class(config)
