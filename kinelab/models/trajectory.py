"""
Frame-indexed trajectory value objects.

A Trajectory is produced once, in full, by the timeline builder and is
addressed by frame index rather than grown step by step.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from kinelab.models.params import MotionModel


class TrajectoryFrame(BaseModel):
    """Reconstructed state at one output frame."""

    model_config = ConfigDict(frozen=True)

    frame: int
    t: float
    x: float
    y: float
    vx: float
    vy: float
    speed: float


class Trajectory(BaseModel):
    """
    Complete reconstructed trajectory for a fixed frame rate and duration.

    Key moments and extents are computed at build time so renderers can
    pick a scale without scanning the frames again.
    """

    model_config = ConfigDict(frozen=True)

    motion: MotionModel
    fps: float
    frames: tuple[TrajectoryFrame, ...] = Field(default_factory=tuple)

    apex_frame: int = 0
    landing_frame: Optional[int] = None  # None for motions that never land

    # Extents across this trajectory and its ghost
    max_x: float = 0.0
    max_y: float = 0.0

    # Same launch with drag forced to zero, for overlay
    ghost: Optional["Trajectory"] = None

    @property
    def total_frames(self) -> int:
        """Index of the last frame."""
        return len(self.frames) - 1

    @property
    def total_time(self) -> float:
        return self.total_frames / self.fps if self.frames else 0.0

    def state_at_frame(self, frame: int) -> TrajectoryFrame:
        """Frame lookup with out-of-range indices clamped to the nearest valid one."""
        if not self.frames:
            raise IndexError("Trajectory has no frames")
        index = max(0, min(int(frame), len(self.frames) - 1))
        return self.frames[index]

    def __len__(self) -> int:
        return len(self.frames)

    def __getitem__(self, index: int) -> TrajectoryFrame:
        return self.frames[index]
