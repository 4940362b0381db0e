"""
Simulation configuration.

Fixed timesteps, buffer limits and clamp floors shared by the steppers,
the evaluator and the worlds. Values can be overridden from the
environment (``KINELAB_*``) for headless runs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)

# Clamp floors for parameters that would otherwise divide by zero
MIN_GRAVITY = 0.1  # m/s^2
MIN_LENGTH = 0.1  # m


@dataclass
class SimulationConfig:
    """Configuration for live stepping and reconstruction."""

    dt: float = 1 / 60  # Live tick, seconds
    evaluator_dt: float = 1 / 300  # Fine step for numerical reconstruction
    pendulum_history_limit: int = 500  # Sliding window for oscillating worlds
    archive_stride: int = 10  # Keep every Nth sample in the archive
    archive_limit: int = 2000
    speed_epsilon: float = 1e-3  # Below this speed drag is ignored
    settle_time: float = 0.01  # Reconstruction ignores ground contact before this
    default_fps: int = 30
    landing_padding: float = 0.5  # Extra seconds rendered after landing

    @classmethod
    def from_env(cls) -> "SimulationConfig":
        """Build a config from ``KINELAB_*`` environment variables."""
        config = cls()
        overrides = {
            "KINELAB_DT": ("dt", float),
            "KINELAB_EVALUATOR_DT": ("evaluator_dt", float),
            "KINELAB_HISTORY_LIMIT": ("pendulum_history_limit", int),
            "KINELAB_ARCHIVE_STRIDE": ("archive_stride", int),
            "KINELAB_DEFAULT_FPS": ("default_fps", int),
        }
        for env_name, (attr, cast) in overrides.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            try:
                value = cast(raw)
            except ValueError:
                logger.warning("Ignoring invalid config override", variable=env_name, value=raw)
                continue
            if value <= 0:
                logger.warning("Ignoring non-positive config override", variable=env_name, value=raw)
                continue
            setattr(config, attr, value)
        return config


DEFAULT_CONFIG = SimulationConfig()
