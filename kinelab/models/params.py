"""
Launch parameters for the two supported motion models.

Parameters are immutable for the duration of a run. Slider input can pass
through physically meaningless values, so every numeric field is clamped
to a safe range instead of rejected.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from kinelab.config import MIN_GRAVITY, MIN_LENGTH
from kinelab.errors import UnsupportedMotionModelError


class MotionModel(str, Enum):
    """Motion models with a stepper and an evaluator."""

    PROJECTILE = "projectile"
    PENDULUM = "pendulum"

    @classmethod
    def _missing_(cls, value: object) -> Optional["MotionModel"]:
        # Legacy experiment id
        if value == "projectile_motion":
            return cls.PROJECTILE
        return None


def _coerce_number(value: Any, default: float) -> float:
    """Parse slider/text input, falling back to the default when unusable."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


class _ParamsBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _parse_numbers(cls, value: Any, info: ValidationInfo) -> Any:
        if info.field_name in ("motion", "label"):
            return value
        return _coerce_number(value, cls.model_fields[info.field_name].default)


class ProjectileParams(_ParamsBase):
    """Ballistic launch with optional quadratic drag."""

    motion: Literal[MotionModel.PROJECTILE] = MotionModel.PROJECTILE

    v0: float = 20.0  # m/s
    angle: float = 45.0  # degrees, any value integrates
    gravity: float = 9.81  # m/s^2
    drag: float = 0.0  # empirical coefficient, a = -drag * |v| * v
    height: float = 0.0  # launch height, m

    @field_validator("v0", "drag")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        return max(0.0, value)

    @field_validator("gravity")
    @classmethod
    def _gravity_floor(cls, value: float) -> float:
        return max(MIN_GRAVITY, value)

    @property
    def angle_rad(self) -> float:
        return math.radians(self.angle)

    @property
    def initial_velocity(self) -> tuple[float, float]:
        """Launch speed decomposed into (vx0, vy0)."""
        return (self.v0 * math.cos(self.angle_rad), self.v0 * math.sin(self.angle_rad))


class PendulumParams(_ParamsBase):
    """Simple damped pendulum released from rest."""

    motion: Literal[MotionModel.PENDULUM] = MotionModel.PENDULUM

    length: float = 1.0  # m
    mass: float = 1.0  # kg, only used for energy
    gravity: float = 9.81
    damping: float = 0.0  # 1/s
    amplitude: float = 15.0  # degrees

    @field_validator("length")
    @classmethod
    def _length_floor(cls, value: float) -> float:
        return max(MIN_LENGTH, value)

    @field_validator("gravity")
    @classmethod
    def _gravity_floor(cls, value: float) -> float:
        return max(MIN_GRAVITY, value)

    @field_validator("damping")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        return max(0.0, value)

    @field_validator("mass")
    @classmethod
    def _positive_mass(cls, value: float) -> float:
        return value if value > 0 else 1.0

    @property
    def amplitude_rad(self) -> float:
        return math.radians(self.amplitude)


Params = Union[ProjectileParams, PendulumParams]

PARAMS_BY_MODEL: dict[MotionModel, type[_ParamsBase]] = {
    MotionModel.PROJECTILE: ProjectileParams,
    MotionModel.PENDULUM: PendulumParams,
}


def parse_motion_model(tag: Union[str, MotionModel]) -> MotionModel:
    """Resolve a motion tag, raising for tags without a kernel."""
    try:
        return MotionModel(tag)
    except ValueError:
        raise UnsupportedMotionModelError(tag) from None


def create_params(tag: Union[str, MotionModel], **fields: Any) -> Params:
    """Build a parameter set for a motion tag from loose field values."""
    motion = parse_motion_model(tag)
    fields.pop("motion", None)
    return PARAMS_BY_MODEL[motion].model_validate(fields)


def with_param(params: Params, name: str, value: Any) -> Params:
    """Return a re-validated copy of ``params`` with one field replaced."""
    if name == "motion" or name not in type(params).model_fields:
        raise ValueError(f"Unknown parameter for {params.motion.value}: {name}")
    data = params.model_dump()
    data[name] = value
    return type(params).model_validate(data)
