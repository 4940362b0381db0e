"""
Kinelab

Projectile and pendulum simulation with three agreeing computation
paths: live fixed-step worlds, a lockstep dual-world scheduler for
comparison, and a deterministic frame-indexed reconstruction for replay.
"""

from kinelab.analysis.moments import Moment, detect_moments
from kinelab.config import SimulationConfig
from kinelab.errors import UnsupportedMotionModelError
from kinelab.models.params import MotionModel, PendulumParams, ProjectileParams, create_params
from kinelab.models.trajectory import Trajectory
from kinelab.physics.evaluator import state_at_time
from kinelab.replay.timeline import TimelineBuilder
from kinelab.world.scheduler import DualWorldScheduler
from kinelab.world.world import World

__version__ = "0.1.0"

__all__ = [
    # Config
    "SimulationConfig",
    # Models
    "MotionModel",
    "ProjectileParams",
    "PendulumParams",
    "create_params",
    "Trajectory",
    # Physics
    "state_at_time",
    # Worlds
    "World",
    "DualWorldScheduler",
    # Replay
    "TimelineBuilder",
    # Analysis
    "Moment",
    "detect_moments",
    # Errors
    "UnsupportedMotionModelError",
]
