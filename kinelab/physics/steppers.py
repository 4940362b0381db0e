"""
Fixed-timestep integrator kernels.

Each stepper owns its running state and advances it by exactly one
interval per ``step`` call. Both kernels update velocity before position
(semi-implicit Euler / Euler-Cromer), which keeps repeated 1/60 s ticks
stable; plain forward Euler drifts visibly on oscillating motion.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import ClassVar, Optional

import structlog

from kinelab.config import DEFAULT_CONFIG, SimulationConfig
from kinelab.models.params import MotionModel, Params, PendulumParams, ProjectileParams
from kinelab.models.state import PendulumState, ProjectileState, State

logger = structlog.get_logger(__name__)


def projectile_acceleration(
    vx: float,
    vy: float,
    gravity: float,
    drag: float,
    speed_epsilon: float = DEFAULT_CONFIG.speed_epsilon,
) -> tuple[float, float]:
    """Gravity plus quadratic drag opposing the velocity."""
    ax = 0.0
    ay = -gravity
    if drag > 0:
        speed = math.hypot(vx, vy)
        if speed > speed_epsilon:
            ax -= drag * speed * vx
            ay -= drag * speed * vy
    return ax, ay


def pendulum_acceleration(theta: float, omega: float, gravity: float, length: float, damping: float) -> float:
    """Full nonlinear pendulum equation with linear damping."""
    return -(gravity / length) * math.sin(theta) - damping * omega


class Stepper(ABC):
    """Stateful kernel advancing one motion model by a fixed timestep."""

    motion: ClassVar[MotionModel]

    # Whether the motion reaches a terminal state
    terminates: ClassVar[bool] = True

    # Fields that may change mid-run without re-initializing
    live_fields: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or DEFAULT_CONFIG

    @abstractmethod
    def initialize(self, params: Params) -> State:
        """Reset to time zero from ``params`` and return the initial state."""

    @abstractmethod
    def step(self, dt: float) -> State:
        """Advance exactly one interval and return the post-step state."""

    @abstractmethod
    def reset(self) -> State:
        """Zero all state and return it."""

    @property
    @abstractmethod
    def state(self) -> State:
        """Current state snapshot."""

    def retune(self, params: Params) -> None:
        """Apply live-editable fields from ``params`` without re-initializing."""


class ProjectileStepper(Stepper):
    """
    Ballistic projectile with optional quadratic drag.

    Landing is terminal: the first step that ends below ground clamps the
    height to zero and zeroes the velocity, after which every step only
    advances time.
    """

    motion = MotionModel.PROJECTILE
    terminates = True

    def __init__(self, config: Optional[SimulationConfig] = None):
        super().__init__(config)
        self.gravity = 9.81
        self.drag = 0.0
        self.reset()

    def reset(self) -> ProjectileState:
        self.t = 0.0
        self.x = 0.0
        self.y = 0.0
        self.vx = 0.0
        self.vy = 0.0
        self.landed = False
        self.landing_x: Optional[float] = None
        return self.state

    def initialize(self, params: ProjectileParams) -> ProjectileState:
        self.reset()
        self.gravity = params.gravity
        self.drag = params.drag
        self.y = params.height
        self.vx, self.vy = params.initial_velocity
        return self.state

    def step(self, dt: float) -> ProjectileState:
        if not self.landed:
            ax, ay = projectile_acceleration(
                self.vx, self.vy, self.gravity, self.drag, self.config.speed_epsilon
            )
            self.vx += ax * dt
            self.vy += ay * dt
            self.x += self.vx * dt
            self.y += self.vy * dt

            if self.y < 0:
                self.y = 0.0
                self.vx = 0.0
                self.vy = 0.0
                self.landed = True
                self.landing_x = self.x

        self.t += dt
        return self.state

    @property
    def state(self) -> ProjectileState:
        return ProjectileState(
            t=self.t, x=self.x, y=self.y, vx=self.vx, vy=self.vy, landed=self.landed
        )


class PendulumStepper(Stepper):
    """
    Damped nonlinear pendulum.

    The small-angle approximation is not used, so large amplitudes show
    the correct period lengthening. There is no terminal state.
    """

    motion = MotionModel.PENDULUM
    terminates = False
    live_fields = frozenset({"length", "mass"})

    def __init__(self, config: Optional[SimulationConfig] = None):
        super().__init__(config)
        self.length = 1.0
        self.mass = 1.0
        self.gravity = 9.81
        self.damping = 0.0
        self.reset()

    def reset(self) -> PendulumState:
        self.t = 0.0
        self.theta = 0.0
        self.omega = 0.0
        self.alpha = 0.0
        return self.state

    def initialize(self, params: PendulumParams) -> PendulumState:
        self.reset()
        self.length = params.length
        self.mass = params.mass
        self.gravity = params.gravity
        self.damping = params.damping
        self.theta = params.amplitude_rad
        # Released from rest
        self.omega = 0.0
        self.alpha = pendulum_acceleration(self.theta, self.omega, self.gravity, self.length, self.damping)
        return self.state

    def retune(self, params: PendulumParams) -> None:
        self.length = params.length
        self.mass = params.mass

    def step(self, dt: float) -> PendulumState:
        self.alpha = pendulum_acceleration(self.theta, self.omega, self.gravity, self.length, self.damping)
        self.omega += self.alpha * dt
        self.theta += self.omega * dt
        self.t += dt
        return self.state

    @property
    def state(self) -> PendulumState:
        return PendulumState(
            t=self.t, theta=self.theta, omega=self.omega, alpha=self.alpha, length=self.length
        )
