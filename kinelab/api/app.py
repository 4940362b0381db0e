"""FastAPI application exposing reconstruction and compare runs."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from kinelab import __version__
from kinelab.analysis.compare import compute_differences
from kinelab.analysis.moments import detect_moments
from kinelab.errors import UnsupportedMotionModelError
from kinelab.models.params import Params, create_params
from kinelab.physics.evaluator import state_at_time
from kinelab.replay.timeline import TimelineBuilder
from kinelab.world.scheduler import DualWorldScheduler

# Request limits, since reconstruction cost grows with t and frame count
MAX_EVALUATE_TIME = 600.0  # s
MAX_TIMELINE_FPS = 240.0
MAX_TIMELINE_FRAMES = 1800
MAX_COMPARE_TICKS = 36_000

app = FastAPI(
    title="Kinelab",
    description="Deterministic projectile and pendulum reconstruction",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----- Request/Response Models -----

class EvaluateRequest(BaseModel):
    """Request for the state at one absolute time."""
    motion: str = "projectile"
    params: dict[str, Any] = Field(default_factory=dict)
    t: float = Field(..., ge=0, le=MAX_EVALUATE_TIME)


class TimelineRequest(BaseModel):
    """Request to build a frame-indexed trajectory."""
    motion: str = "projectile"
    params: dict[str, Any] = Field(default_factory=dict)
    fps: float = Field(30, gt=0, le=MAX_TIMELINE_FPS)
    duration_frames: int | None = Field(None, ge=0, le=MAX_TIMELINE_FRAMES)
    include_ghost: bool = True
    include_frames: bool = True


class TimelineResponse(BaseModel):
    """Trajectory summary with optional frames."""
    motion: str
    fps: float
    total_frames: int
    total_time: float
    apex_frame: int
    landing_frame: int | None
    max_x: float
    max_y: float
    moments: list[dict[str, Any]]
    frames: list[dict[str, Any]] | None = None
    ghost_frames: list[dict[str, Any]] | None = None


class CompareRequest(BaseModel):
    """Request for a headless side-by-side run."""
    motion: str = "projectile"
    params_a: dict[str, Any] = Field(default_factory=dict)
    params_b: dict[str, Any] = Field(default_factory=dict)
    max_ticks: int = Field(3600, gt=0, le=MAX_COMPARE_TICKS)


# ----- Helpers -----

def _parse_params(motion: str, params: dict[str, Any]) -> Params:
    try:
        return create_params(motion, **params)
    except UnsupportedMotionModelError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _moment_dicts(history) -> list[dict[str, Any]]:
    return [
        {
            "type": m.type.value,
            "index": m.index,
            "time": m.time,
            "label": m.label,
            "description": m.description,
        }
        for m in detect_moments(history)
    ]


# ----- Endpoints -----

@app.get("/")
async def root():
    """Health check."""
    return {
        "service": "Kinelab",
        "version": __version__,
        "status": "healthy",
    }


@app.post("/evaluate")
def evaluate(request: EvaluateRequest):
    """Evaluate the motion at an absolute time."""
    params = _parse_params(request.motion, request.params)
    state = state_at_time(request.t, params)
    return {"motion": params.motion.value, "state": state.to_dict()}


@app.post("/timeline", response_model=TimelineResponse)
def build_timeline(request: TimelineRequest):
    """Build a deterministic trajectory for export."""
    params = _parse_params(request.motion, request.params)

    builder = TimelineBuilder()
    try:
        duration_frames = request.duration_frames
        if duration_frames is None:
            duration_frames = builder.plan_frames(params, request.fps)
        if duration_frames > MAX_TIMELINE_FRAMES:
            raise ValueError(f"Timeline needs {duration_frames} frames, limit is {MAX_TIMELINE_FRAMES}")
        trajectory = builder.build(
            params,
            fps=request.fps,
            duration_frames=duration_frames,
            include_ghost=request.include_ghost,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    frames = None
    ghost_frames = None
    if request.include_frames:
        frames = [f.model_dump() for f in trajectory.frames]
        if trajectory.ghost:
            ghost_frames = [f.model_dump() for f in trajectory.ghost.frames]

    return TimelineResponse(
        motion=trajectory.motion.value,
        fps=trajectory.fps,
        total_frames=trajectory.total_frames,
        total_time=trajectory.total_time,
        apex_frame=trajectory.apex_frame,
        landing_frame=trajectory.landing_frame,
        max_x=trajectory.max_x,
        max_y=trajectory.max_y,
        moments=_moment_dicts(trajectory.frames),
        frames=frames,
        ghost_frames=ghost_frames,
    )


@app.post("/compare")
def compare(request: CompareRequest):
    """Run both worlds in lockstep and report their differences."""
    params_a = _parse_params(request.motion, request.params_a)
    params_b = _parse_params(request.motion, request.params_b)

    scheduler = DualWorldScheduler(params_a, params_b)
    snapshot = scheduler.run(max_ticks=request.max_ticks)
    differences = compute_differences(snapshot.a.history, snapshot.b.history)

    return {
        "ticks": snapshot.tick,
        "settled": scheduler.settled,
        "a": {"state": snapshot.a.state.to_dict(), "moments": _moment_dicts(snapshot.a.history)},
        "b": {"state": snapshot.b.state.to_dict(), "moments": _moment_dicts(snapshot.b.history)},
        "differences": asdict(differences),
    }
