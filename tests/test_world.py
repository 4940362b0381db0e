"""
Tests for worlds, frame-paced driving and the dual-world scheduler.
"""

import asyncio
from dataclasses import FrozenInstanceError

import pytest

from kinelab.config import SimulationConfig
from kinelab.models.params import PendulumParams, ProjectileParams
from kinelab.models.state import PendulumState
from kinelab.world.loop import AsyncioFrameSource, FrameDriver, ManualFrameSource
from kinelab.world.scheduler import DualWorldScheduler
from kinelab.world.world import SimulationEvent, World


class TestWorldLifecycle:
    """Tests for start, pause, resume and reset."""
    
    def test_idle_until_started(self):
        """Test stepping an idle world does nothing."""
        world = World(ProjectileParams())
        world.step()
        assert world.state.t == 0.0
        assert len(world.history) == 0
        assert not world.running
    
    def test_start_initializes_from_params(self):
        """Test a fresh start records the initial state."""
        world = World(ProjectileParams(v0=10, angle=90, height=2))
        world.start()
        assert world.running
        assert world.state.y == 2.0
        assert world.state.vy == pytest.approx(10.0)
        assert len(world.history) == 1
    
    def test_pause_and_resume(self):
        """Test resuming continues the run without re-initializing."""
        world = World(ProjectileParams(v0=20, angle=45))
        world.start()
        for _ in range(10):
            world.step()
        world.pause()
        paused_at = world.state
        
        world.step()
        assert world.state == paused_at
        
        world.start()
        world.step()
        assert world.state.t == pytest.approx(paused_at.t + world.config.dt)
        assert len(world.history) == 12
        assert world.steps == 11
    
    def test_landing_stops_run(self):
        """Test a headless run halts on landing."""
        world = World(ProjectileParams(v0=20, angle=45))
        snapshot = world.run()
        assert snapshot.landed
        assert not snapshot.running
        assert snapshot.y == 0.0
        assert snapshot.x == pytest.approx(40.77, rel=0.02)
    
    def test_start_after_landing_is_noop(self):
        """Test a landed world ignores start until reset."""
        world = World(ProjectileParams(v0=5, angle=45))
        world.run()
        samples = len(world.history)
        world.start()
        assert not world.running
        assert len(world.history) == samples
    
    def test_reset_keeps_ghost(self):
        """Test reset freezes the finished run as a ghost."""
        world = World(ProjectileParams(v0=10, angle=45))
        world.run()
        final = world.history.snapshot()
        world.reset()
        
        assert world.ghost == final
        assert world.state.t == 0.0
        assert not world.landed
        assert len(world.history) == 0
        
        world.run()
        assert world.ghost == final
    
    def test_reset_without_ghost(self):
        """Test reset can discard the previous ghost."""
        world = World(ProjectileParams(v0=10, angle=45))
        world.run()
        world.reset()
        world.reset(keep_ghost=False)
        assert world.ghost is None
    
    def test_param_change_applies_on_next_start(self):
        """Test editing a projectile parameter mid-run leaves the run alone."""
        world = World(ProjectileParams(v0=20, angle=45))
        world.start()
        for _ in range(5):
            world.step()
        vx_before = world.state.vx
        world.set_param("v0", 40)
        world.step()
        assert world.state.vx == vx_before
        
        short_range = world.run().x
        world.reset()
        assert world.run().x > short_range
    
    def test_unknown_param_rejected(self):
        """Test unknown parameter names raise."""
        world = World(ProjectileParams())
        with pytest.raises(ValueError):
            world.set_param("spin", 3)
    
    def test_set_params_switches_model(self):
        """Test replacing the motion model swaps the kernel."""
        world = World(ProjectileParams())
        world.set_params(PendulumParams(amplitude=30))
        world.start()
        world.step()
        assert isinstance(world.state, PendulumState)
        assert world.history.limit == world.config.pendulum_history_limit


class TestWorldSnapshots:
    """Tests for snapshot publication."""
    
    def test_snapshot_is_frozen(self):
        """Test snapshots cannot be mutated."""
        world = World(ProjectileParams())
        with pytest.raises(FrozenInstanceError):
            world.snapshot.name = "other"
    
    def test_snapshot_replaced_each_step(self):
        """Test a held snapshot never changes after later steps."""
        world = World(ProjectileParams(v0=20, angle=45))
        world.start()
        held = world.snapshot
        t_held = held.t
        samples = len(held.history)
        
        world.step()
        assert world.snapshot is not held
        assert held.t == t_held
        assert len(held.history) == samples
        assert world.snapshot.t > t_held
    
    def test_events_in_order(self):
        """Test apex and impact callbacks fire once each, in order."""
        seen = []
        world = World(
            ProjectileParams(v0=20, angle=45),
            name="earth",
            on_event=lambda event, name, state: seen.append((event, name)),
        )
        world.run()
        assert seen == [
            (SimulationEvent.APEX_REACHED, "earth"),
            (SimulationEvent.IMPACT, "earth"),
        ]


class TestPendulumWorld:
    """Tests for pendulum-specific world behaviour."""
    
    def test_history_sliding_window(self):
        """Test pendulum history is capped while the archive keeps a downsample."""
        world = World(PendulumParams())
        world.run(max_steps=800)
        
        assert len(world.history) == 500
        assert world.history[0].t > 0
        assert world.archive[0].t == 0.0
        assert len(world.archive) == 81
    
    def test_never_lands(self):
        """Test a pendulum run only stops at the step limit."""
        world = World(PendulumParams(damping=2.0))
        world.run(max_steps=300)
        assert not world.landed
        assert world.steps == 300
    
    def test_live_length_edit(self):
        """Test pendulum length applies mid-run."""
        world = World(PendulumParams(length=1.0))
        world.start()
        for _ in range(20):
            world.step()
        theta = world.state.theta
        world.set_param("length", 2.0)
        world.step()
        assert world.state.length == 2.0
        assert world.state.theta != theta
    
    def test_length_edit_while_paused(self):
        """Test a length edited while paused applies on resume."""
        world = World(PendulumParams(length=1.0))
        world.start()
        for _ in range(10):
            world.step()
        world.pause()
        world.set_param("length", 2.0)
        world.start()
        world.step()
        assert world.state.t > 10 * world.config.dt
        assert world.state.length == 2.0
        assert world.state.length == world.params.length
    
    def test_set_params_retunes_live_fields(self):
        """Test replacing the whole parameter set mid-run applies live fields."""
        world = World(PendulumParams(length=1.0, damping=0.0))
        world.start()
        for _ in range(10):
            world.step()
        theta = world.state.theta
        world.set_params(PendulumParams(length=3.0, damping=0.5))
        assert world.state.theta == theta
        world.step()
        assert world.state.length == 3.0
        assert world.stepper.damping == 0.0
    
    def test_custom_history_limit(self):
        """Test the history window follows configuration."""
        config = SimulationConfig(pendulum_history_limit=50)
        world = World(PendulumParams(), config)
        world.run(max_steps=100)
        assert len(world.history) == 50


class TestFrameDriving:
    """Tests for frame sources and the frame driver."""
    
    def test_manual_source_drives_world(self):
        """Test each frame advances exactly one step."""
        source = ManualFrameSource()
        world = World(ProjectileParams(v0=20, angle=45), frame_source=source)
        world.start()
        assert source.pending == 1
        
        assert source.advance(5) == 5
        assert world.steps == 5
        assert world.state.t == pytest.approx(5 * world.config.dt)
    
    def test_pause_cancels_pending_frame(self):
        """Test pausing withdraws the scheduled frame."""
        source = ManualFrameSource()
        world = World(ProjectileParams(), frame_source=source)
        world.start()
        world.pause()
        assert source.pending == 0
        assert source.advance() == 0
    
    def test_reset_cancels_pending_frame(self):
        """Test no stale frame fires after a reset."""
        source = ManualFrameSource()
        world = World(ProjectileParams(v0=20, angle=45), frame_source=source)
        world.start()
        source.advance(3)
        world.reset()
        assert source.pending == 0
        source.advance(3)
        assert world.state.t == 0.0
    
    def test_loop_ends_on_landing(self):
        """Test the frame loop stops requesting frames once landed."""
        source = ManualFrameSource()
        world = World(ProjectileParams(v0=5, angle=45), frame_source=source)
        world.start()
        source.advance(10_000)
        assert world.landed
        assert not world.running
        assert source.pending == 0
    
    def test_driver_single_pending_request(self):
        """Test repeated starts keep one request pending."""
        source = ManualFrameSource()
        driver = FrameDriver(source, lambda: True)
        driver.start()
        driver.start()
        assert source.pending == 1
        source.advance()
        assert source.pending == 1
        driver.stop()
        assert not driver.active
    
    def test_asyncio_source(self):
        """Test an event loop timer can drive a world to landing."""
        async def scenario():
            world = World(
                ProjectileParams(v0=5, angle=60),
                frame_source=AsyncioFrameSource(interval=0),
            )
            world.start()
            for _ in range(10_000):
                if not world.running:
                    break
                await asyncio.sleep(0)
            return world
        
        world = asyncio.run(scenario())
        assert world.landed


class TestDualWorldScheduler:
    """Tests for lockstep compare runs."""
    
    def _earth_moon(self, **kwargs) -> DualWorldScheduler:
        return DualWorldScheduler(
            ProjectileParams(v0=20, angle=45, gravity=9.81),
            ProjectileParams(v0=20, angle=45, gravity=1.62),
            **kwargs,
        )
    
    def test_lockstep(self):
        """Test both worlds always show the same simulated time."""
        scheduler = self._earth_moon()
        scheduler.start()
        for _ in range(200):
            snapshot = scheduler.tick()
            assert snapshot.a.t == snapshot.b.t
            assert len(snapshot.a.history) == len(snapshot.b.history)
    
    def test_identical_params_identical_histories(self):
        """Test identical worlds record identical histories step for step."""
        params = ProjectileParams(v0=25, angle=60, drag=0.01)
        scheduler = DualWorldScheduler(params, params)
        snapshot = scheduler.run()
        assert snapshot.a.history == snapshot.b.history
        assert len(snapshot.a.history) > 100
    
    def test_a_steps_before_b(self):
        """Test world A is stepped before world B within a tick."""
        scheduler = self._earth_moon()
        order = []
        for world in scheduler.worlds:
            original = world.step
            
            def spy(world=world, original=original):
                order.append(world.name)
                return original()
            
            world.step = spy
        scheduler.start()
        scheduler.tick()
        scheduler.tick()
        assert order == ["A", "B", "A", "B"]
    
    def test_runs_until_both_land(self):
        """Test the first world to land keeps recording until the second lands."""
        scheduler = self._earth_moon()
        snapshot = scheduler.run()
        
        assert snapshot.a.landed and snapshot.b.landed
        assert not snapshot.running
        assert snapshot.a.t == snapshot.b.t
        assert snapshot.a.history[-1].x == snapshot.a.history[-50].x
        assert snapshot.b.x > snapshot.a.x
    
    def test_frame_source_drives_both(self):
        """Test the shared frame loop stops once both worlds settle."""
        source = ManualFrameSource()
        scheduler = self._earth_moon(frame_source=source)
        scheduler.start()
        source.advance(20)
        assert scheduler.snapshot.tick == 20
        
        source.advance(100_000)
        assert scheduler.settled
        assert source.pending == 0
    
    def test_linked_params_mirrored(self):
        """Test launch speed edits apply to both worlds."""
        scheduler = self._earth_moon()
        scheduler.set_param("a", "v0", 30)
        assert scheduler.world_a.params.v0 == 30
        assert scheduler.world_b.params.v0 == 30
    
    def test_unlinked_params_independent(self):
        """Test gravity edits apply to one world only."""
        scheduler = self._earth_moon()
        scheduler.set_param("B", "gravity", 3.7)
        assert scheduler.world_a.params.gravity == 9.81
        assert scheduler.world_b.params.gravity == 3.7
    
    def test_custom_links(self):
        """Test the linked set is configurable."""
        scheduler = self._earth_moon(linked=())
        scheduler.set_param("a", "v0", 30)
        assert scheduler.world_b.params.v0 == 20
        scheduler.set_shared_param("drag", 0.01)
        assert scheduler.world_a.params.drag == scheduler.world_b.params.drag == 0.01
    
    def test_linked_write_skips_missing_field(self):
        """Test a linked write on a mixed pair only touches worlds with the field."""
        scheduler = DualWorldScheduler(ProjectileParams(v0=20), PendulumParams())
        scheduler.set_param("a", "v0", 30)
        assert scheduler.world_a.params.v0 == 30
        assert scheduler.world_b.params == PendulumParams()
    
    def test_rejected_write_changes_nothing(self):
        """Test a write one world rejects leaves both worlds unchanged."""
        scheduler = DualWorldScheduler(ProjectileParams(v0=20), PendulumParams())
        with pytest.raises(ValueError):
            scheduler.set_param("b", "v0", 30)
        with pytest.raises(ValueError):
            scheduler.set_shared_param("v0", 30)
        assert scheduler.world_a.params.v0 == 20
        assert scheduler.world_b.params == PendulumParams()
    
    def test_unknown_world(self):
        """Test unknown world keys raise."""
        with pytest.raises(ValueError):
            self._earth_moon().world("c")
    
    def test_pendulums_never_settle(self):
        """Test a pendulum compare run continues until the tick limit."""
        scheduler = DualWorldScheduler(PendulumParams(length=1.0), PendulumParams(length=2.0))
        snapshot = scheduler.run(max_ticks=120)
        assert not scheduler.settled
        assert snapshot.tick == 120
    
    def test_reset_keeps_ghosts(self):
        """Test resetting keeps both runs as ghosts."""
        scheduler = self._earth_moon()
        scheduler.run()
        scheduler.reset()
        assert scheduler.snapshot.a.ghost is not None
        assert scheduler.snapshot.b.ghost is not None
        assert scheduler.snapshot.tick == 0
