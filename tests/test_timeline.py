"""
Tests for frame-indexed trajectory reconstruction.
"""

from types import SimpleNamespace

import pytest

from kinelab.errors import UnsupportedMotionModelError
from kinelab.models.params import PendulumParams, ProjectileParams
from kinelab.physics.metrics import projectile_metrics
from kinelab.replay.timeline import (
    TimelineBuilder,
    find_apex_frame,
    find_landing_frame,
    trajectory_extents,
)
from kinelab.world.world import World


@pytest.fixture
def builder():
    return TimelineBuilder()


@pytest.fixture
def launch():
    return ProjectileParams(v0=20, angle=45, gravity=9.81)


class TestTimelineBuilder:
    """Tests for TimelineBuilder.build."""
    
    def test_planned_frame_count(self, builder, launch):
        """Test the default duration covers the flight plus padding."""
        assert builder.plan_frames(launch, 30) == 102
        trajectory = builder.build(launch, fps=30)
        assert len(trajectory) == 103
        assert trajectory.total_frames == 102
        assert trajectory.total_time == pytest.approx(3.4)
    
    def test_frames_sampled_at_frame_times(self, builder, launch):
        """Test frame f sits at t = f / fps."""
        trajectory = builder.build(launch, fps=24, duration_frames=48)
        assert [f.frame for f in trajectory.frames] == list(range(49))
        assert trajectory[24].t == pytest.approx(1.0)
    
    def test_apex_matches_closed_form(self, builder, launch):
        """Test the apex frame lies within sampling error of the textbook height."""
        trajectory = builder.build(launch, fps=30)
        expected = projectile_metrics(launch).max_height
        apex = trajectory.state_at_frame(trajectory.apex_frame)
        
        assert trajectory.apex_frame == 43
        assert apex.y == pytest.approx(expected, abs=0.001)
        assert trajectory.max_y == pytest.approx(expected, abs=0.001)
    
    def test_landing_frame_rests_at_range(self, builder, launch):
        """Test the landing frame is the first resting frame at the exact range."""
        trajectory = builder.build(launch, fps=30)
        landing = trajectory[trajectory.landing_frame]
        
        assert trajectory.landing_frame == 87
        assert landing.y == 0.0
        assert landing.x == pytest.approx(40.775, abs=0.001)
        assert trajectory[86].y > 0
        assert all(f.x == landing.x for f in trajectory.frames[87:])
    
    def test_deterministic(self, builder, launch):
        """Test identical inputs give identical trajectories."""
        first = builder.build(launch.model_copy(update={"drag": 0.01}), fps=30)
        second = TimelineBuilder().build(launch.model_copy(update={"drag": 0.01}), fps=30)
        assert first == second
    
    def test_state_at_frame_clamps(self, builder, launch):
        """Test out-of-range lookups clamp to the ends."""
        trajectory = builder.build(launch, fps=30, duration_frames=10)
        assert trajectory.state_at_frame(-5).frame == 0
        assert trajectory.state_at_frame(500).frame == 10
    
    def test_ghost_for_drag(self, builder):
        """Test a drag launch carries a drag-free ghost."""
        params = ProjectileParams(v0=30, angle=45, drag=0.02)
        trajectory = builder.build(params, fps=30)
        
        assert trajectory.ghost is not None
        assert len(trajectory.ghost) == len(trajectory)
        assert trajectory.ghost.ghost is None
        assert trajectory.ghost.max_x > trajectory[trajectory.landing_frame].x
        assert trajectory.max_x == pytest.approx(trajectory.ghost.max_x)
        assert trajectory.max_y == pytest.approx(trajectory.ghost.max_y)
    
    def test_no_ghost_without_drag(self, builder, launch):
        """Test a drag-free launch has no ghost."""
        assert builder.build(launch, fps=30).ghost is None
        assert builder.build(
            launch.model_copy(update={"drag": 0.02}), fps=30, include_ghost=False
        ).ghost is None
    
    def test_pendulum_requires_duration(self, builder):
        """Test pendulums need an explicit duration."""
        with pytest.raises(ValueError):
            builder.build(PendulumParams())
    
    def test_pendulum_trajectory(self, builder):
        """Test damped pendulum reconstruction."""
        trajectory = builder.build(PendulumParams(damping=0.5, amplitude=30), fps=30, duration_frames=90)
        assert len(trajectory) == 91
        assert trajectory.apex_frame == 0
        assert trajectory.landing_frame is None
        assert trajectory.ghost is None
    
    def test_degenerate_launch_requires_duration(self, builder):
        """Test a launch that never lands needs an explicit duration."""
        params = ProjectileParams(v0=5, angle=45, height=-100)
        with pytest.raises(ValueError):
            builder.build(params, fps=30)
        assert len(builder.build(params, fps=30, duration_frames=15)) == 16
    
    def test_invalid_fps(self, builder, launch):
        """Test non-positive frame rates are rejected."""
        with pytest.raises(ValueError):
            builder.build(launch, fps=0)
        with pytest.raises(ValueError):
            builder.build(launch, fps=30, duration_frames=-1)
    
    def test_unsupported_params(self, builder):
        """Test unknown motion models are rejected."""
        with pytest.raises(UnsupportedMotionModelError):
            builder.build(SimpleNamespace(motion="orbit"), fps=30)
    
    def test_serializes(self, builder, launch):
        """Test trajectories dump to JSON."""
        data = builder.build(launch, fps=10).model_dump(mode="json")
        assert data["motion"] == "projectile"
        assert data["landing_frame"] is not None
        assert len(data["frames"]) == 35


class TestFrameHelpers:
    """Tests for the frame scanning helpers."""
    
    def test_apex_first_wins(self):
        """Test ties resolve to the earliest frame."""
        frames = [SimpleNamespace(y=y) for y in (0, 3, 3, 1)]
        assert find_apex_frame(frames) == 1
    
    def test_landing_skips_launch_frames(self):
        """Test ground contact in the first two frames is ignored."""
        frames = [SimpleNamespace(y=y) for y in (0, 0, 2, 1, 0, 0)]
        assert find_landing_frame(frames) == 4
    
    def test_landing_defaults_to_last(self):
        """Test an airborne sequence lands on its last frame."""
        frames = [SimpleNamespace(y=y) for y in (0, 1, 2, 3)]
        assert find_landing_frame(frames) == 3
    
    def test_extents_floor_at_zero(self):
        """Test extents never go negative."""
        frames = [SimpleNamespace(x=-x, y=1.0) for x in range(5)]
        assert trajectory_extents(frames) == (0.0, 1.0)


class TestReplayMatchesLive:
    """Regression tests between live stepping and reconstruction."""
    
    def test_live_60hz_matches_replay_30fps(self, builder, launch):
        """Test every other live sample agrees with the replay frame."""
        world = World(launch)
        world.run()
        trajectory = builder.build(launch, fps=30)
        
        for i in range(0, len(world.history), 2):
            live = world.history[i]
            if live.landed:
                break
            frame = trajectory[i // 2]
            assert frame.t == pytest.approx(live.t)
            assert frame.x == pytest.approx(live.x, abs=1e-6)
            assert frame.y == pytest.approx(live.y, abs=0.3)
