"""
Frame-indexed trajectory reconstruction for deterministic replay.

The builder samples the pure evaluator once per output frame, so the
result depends only on the parameters, the frame rate and the duration.
It never reads a live world: a replay rendered at 30 fps reproduces the
run the user watched at 60 fps.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import structlog

from kinelab.config import DEFAULT_CONFIG, SimulationConfig
from kinelab.errors import UnsupportedMotionModelError
from kinelab.models.params import Params, PendulumParams, ProjectileParams, with_param
from kinelab.models.trajectory import Trajectory, TrajectoryFrame
from kinelab.physics.evaluator import state_at_time
from kinelab.physics.metrics import time_of_flight

logger = structlog.get_logger(__name__)


def find_apex_frame(frames: Sequence[TrajectoryFrame]) -> int:
    """Index of the highest frame; the first one wins ties."""
    apex = 0
    max_y = -math.inf
    for i, frame in enumerate(frames):
        if frame.y > max_y:
            max_y = frame.y
            apex = i
    return apex


def find_landing_frame(frames: Sequence[TrajectoryFrame]) -> int:
    """First frame from index 2 onward at ground level, else the last frame."""
    for i in range(2, len(frames)):
        if frames[i].y <= 0:
            return i
    return max(0, len(frames) - 1)


def trajectory_extents(*frame_sets: Sequence[TrajectoryFrame]) -> tuple[float, float]:
    """Largest x and y across all given frame sequences, never below zero."""
    max_x = 0.0
    max_y = 0.0
    for frames in frame_sets:
        for frame in frames:
            if frame.x > max_x:
                max_x = frame.x
            if frame.y > max_y:
                max_y = frame.y
    return max_x, max_y


class TimelineBuilder:
    """
    Builds complete Trajectories from a parameter set.

    Example:
        ```python
        builder = TimelineBuilder()
        trajectory = builder.build(ProjectileParams(v0=20, angle=45), fps=30)
        frame = trajectory.state_at_frame(trajectory.apex_frame)
        ```
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.logger = structlog.get_logger(__name__)

    def plan_frames(self, params: Params, fps: float) -> int:
        """
        Frame budget covering the drag-free flight plus a short tail.

        Raises:
            ValueError: if the motion never lands on its own, so the caller
                has to supply a duration.
        """
        if isinstance(params, ProjectileParams):
            flight = time_of_flight(params)
            if flight is None:
                raise ValueError("Launch never reaches the ground; duration_frames is required")
            return math.ceil((flight + self.config.landing_padding) * fps)
        if isinstance(params, PendulumParams):
            raise ValueError("Pendulum motion does not terminate; duration_frames is required")
        raise UnsupportedMotionModelError(getattr(params, "motion", type(params).__name__))

    def build(
        self,
        params: Params,
        fps: Optional[float] = None,
        duration_frames: Optional[int] = None,
        include_ghost: bool = True,
    ) -> Trajectory:
        """
        Sample frames ``0..duration_frames`` inclusive at ``t = frame / fps``.

        When the launch has drag, a second drag-free trajectory is built
        as a ghost and included in the extents.
        """
        fps = fps if fps is not None else self.config.default_fps
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        if duration_frames is None:
            duration_frames = self.plan_frames(params, fps)
        if duration_frames < 0:
            raise ValueError(f"duration_frames must be non-negative, got {duration_frames}")

        frames = self._sample(params, fps, duration_frames)

        ghost = None
        if include_ghost and isinstance(params, ProjectileParams) and params.drag > 0:
            ghost_frames = self._sample(with_param(params, "drag", 0.0), fps, duration_frames)
            ghost_x, ghost_y = trajectory_extents(ghost_frames)
            ghost = Trajectory(
                motion=params.motion,
                fps=fps,
                frames=ghost_frames,
                apex_frame=find_apex_frame(ghost_frames),
                landing_frame=find_landing_frame(ghost_frames),
                max_x=ghost_x,
                max_y=ghost_y,
            )

        max_x, max_y = trajectory_extents(frames, ghost.frames if ghost else ())
        trajectory = Trajectory(
            motion=params.motion,
            fps=fps,
            frames=frames,
            apex_frame=find_apex_frame(frames),
            landing_frame=find_landing_frame(frames) if isinstance(params, ProjectileParams) else None,
            max_x=max_x,
            max_y=max_y,
            ghost=ghost,
        )

        self.logger.info(
            "Trajectory built",
            motion=params.motion.value,
            fps=fps,
            frames=len(frames),
            apex_frame=trajectory.apex_frame,
            landing_frame=trajectory.landing_frame,
            ghost=ghost is not None,
        )
        return trajectory

    def _sample(self, params: Params, fps: float, duration_frames: int) -> tuple[TrajectoryFrame, ...]:
        frames = []
        for f in range(duration_frames + 1):
            state = state_at_time(f / fps, params, self.config)
            frames.append(TrajectoryFrame(
                frame=f,
                t=state.t,
                x=state.x,
                y=state.y,
                vx=state.vx,
                vy=state.vy,
                speed=state.speed,
            ))
        return tuple(frames)
