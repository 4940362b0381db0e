"""
A single simulated world: one stepper, its running state and history.

The world exposes its state as a frozen snapshot that is replaced
wholesale after every step. Renderers poll ``snapshot`` once per display
frame and must treat it as valid only until the next step.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from kinelab.config import DEFAULT_CONFIG, SimulationConfig
from kinelab.models.params import Params, with_param
from kinelab.models.state import History, ProjectileState, State
from kinelab.physics.registry import get_stepper
from kinelab.world.loop import FrameDriver, FrameSource

logger = structlog.get_logger(__name__)


class SimulationEvent(str, Enum):
    """Live events raised while a world is stepping."""

    APEX_REACHED = "apex_reached"
    IMPACT = "impact"


EventCallback = Callable[[SimulationEvent, str, State], None]


class EventTracker:
    """Edge detection for live apex and impact events."""

    def __init__(self):
        self.reset()

    def reset(self, state: Optional[State] = None) -> None:
        self.prev_vy: Optional[float] = state.vy if isinstance(state, ProjectileState) else None
        self.prev_landed = bool(state.landed) if state is not None else False

    def observe(self, state: State) -> list[SimulationEvent]:
        if not isinstance(state, ProjectileState):
            return []

        events = []
        if self.prev_vy is not None and self.prev_vy > 0 and state.vy <= 0:
            events.append(SimulationEvent.APEX_REACHED)
        if state.landed and not self.prev_landed:
            events.append(SimulationEvent.IMPACT)

        self.prev_vy = state.vy
        self.prev_landed = state.landed
        return events


@dataclass(frozen=True)
class WorldSnapshot:
    """Read-only view of a world handed to renderers."""

    name: str
    state: State
    history: tuple[State, ...] = ()
    ghost: Optional[tuple[State, ...]] = None
    running: bool = False

    @property
    def t(self) -> float:
        return self.state.t

    @property
    def x(self) -> float:
        return self.state.x

    @property
    def y(self) -> float:
        return self.state.y

    @property
    def landed(self) -> bool:
        return self.state.landed


class World:
    """
    Owns one stepper and its lifecycle.

    Without a frame source the world is driven by calling ``step`` (the
    dual-world scheduler does this). With one, ``start`` schedules a
    frame loop that steps once per frame at the fixed timestep and stops
    itself when a projectile lands.

    Example:
        ```python
        world = World(ProjectileParams(v0=20, angle=45))
        world.start()
        while not world.landed:
            world.step()
        print(world.snapshot.x)
        ```
    """

    def __init__(
        self,
        params: Params,
        config: Optional[SimulationConfig] = None,
        frame_source: Optional[FrameSource] = None,
        name: str = "world",
        on_event: Optional[EventCallback] = None,
    ):
        self.name = name
        self.config = config or DEFAULT_CONFIG
        self.on_event = on_event
        self.logger = structlog.get_logger(__name__).bind(world=name)

        self._params = params
        self.stepper = get_stepper(params.motion, self.config)
        self._driver = FrameDriver(frame_source, self._on_frame) if frame_source else None

        self._running = False
        self._step_count = 0
        self._tracker = EventTracker()
        self._state: State = self.stepper.state
        self.history = self._new_history()
        self.archive = self._new_archive()
        self.ghost: Optional[tuple[State, ...]] = None
        self._snapshot: Optional[WorldSnapshot] = None

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    @property
    def params(self) -> Params:
        return self._params

    def set_param(self, name: str, value: Any) -> Params:
        """
        Replace one parameter.

        Takes effect on the next fresh start, except for the stepper's
        live fields (pendulum length/mass) which apply mid-run or on resume.
        """
        self._params = with_param(self._params, name, value)
        if self._running and name in self.stepper.live_fields:
            self.stepper.retune(self._params)
            self.logger.debug("Live parameter applied", parameter=name, value=value)
        return self._params

    def set_params(self, params: Params) -> None:
        """
        Replace the whole parameter set.

        A new motion model resets the world. Otherwise the stepper's live
        fields apply mid-run, as with ``set_param``.
        """
        if params.motion != self._params.motion:
            self.reset(keep_ghost=False)
            self.stepper = get_stepper(params.motion, self.config)
            self._state = self.stepper.state
            self.history = self._new_history()
            self.archive = self._new_archive()
        self._params = params
        if self._running:
            self.stepper.retune(params)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> State:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    @property
    def steps(self) -> int:
        """Steps taken since the run was initialized."""
        return max(0, self._step_count - 1)

    @property
    def landed(self) -> bool:
        return self._state.landed

    @property
    def snapshot(self) -> WorldSnapshot:
        if self._snapshot is None:
            self._snapshot = WorldSnapshot(
                name=self.name,
                state=self._state,
                history=self.history.snapshot(),
                ghost=self.ghost,
                running=self._running,
            )
        return self._snapshot

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Start or resume the run.

        A fresh run (time zero) initializes the stepper from the current
        parameters; a paused run resumes where it stopped. A landed run
        stays landed until reset.
        """
        if self._running:
            return
        if self.landed:
            self.logger.debug("Start ignored, world has landed")
            return

        if self._state.t == 0:
            self._prime()
        else:
            # Live fields edited while paused
            self.stepper.retune(self._params)
        self._running = True
        self._snapshot = None
        if self._driver:
            self._driver.start()

        self.logger.info("World started", motion=self._params.motion.value, t=self._state.t)

    def restart(self) -> None:
        """Re-initialize from the current parameters and run."""
        self.pause()
        self._prime()
        self._running = True
        if self._driver:
            self._driver.start()

    def pause(self) -> None:
        if self._driver:
            self._driver.stop()
        if self._running:
            self._running = False
            self._snapshot = None
            self.logger.debug("World paused", t=self._state.t)

    def reset(self, keep_ghost: bool = True) -> None:
        """
        Stop and return to the zero state with an empty history.

        With ``keep_ghost`` the finished run's history is kept as a frozen
        copy for overlay; otherwise any previous ghost is dropped.
        """
        self.pause()
        if not keep_ghost:
            self.ghost = None
        elif len(self.history) > 1:
            self.ghost = self.history.snapshot()

        self._state = self.stepper.reset()
        self._step_count = 0
        self.history = self._new_history()
        self.archive = self._new_archive()
        self._tracker.reset()
        self._snapshot = None

        self.logger.info("World reset", ghost_samples=len(self.ghost) if self.ghost else 0)

    def step(self) -> State:
        """Advance one fixed tick. A no-op while the world is not running."""
        if not self._running:
            return self._state

        state = self.stepper.step(self.config.dt)
        self._record(state)

        for event in self._tracker.observe(state):
            if event == SimulationEvent.IMPACT:
                self.logger.info("Projectile landed", t=round(state.t, 4), x=round(state.x, 4))
            if self.on_event:
                self.on_event(event, self.name, state)

        return state

    def run(self, max_steps: int = 10_000) -> WorldSnapshot:
        """Step headlessly until the run lands, pauses or hits ``max_steps``."""
        self.start()
        steps = 0
        while self._running and steps < max_steps:
            self.step()
            if self.landed:
                self.pause()
            steps += 1
        self.pause()
        return self.snapshot

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _prime(self) -> None:
        state = self.stepper.initialize(self._params)
        self._step_count = 0
        self.history = self._new_history()
        self.archive = self._new_archive()
        self._record(state)
        self._tracker.reset(state)

    def _record(self, state: State) -> None:
        self._state = state
        self.history.append(state)
        if self.archive is not None and self._step_count % self.config.archive_stride == 0:
            self.archive.append(state)
        self._step_count += 1
        self._snapshot = None

    def _on_frame(self) -> bool:
        self.step()
        if self.landed:
            self.pause()
        return self._running

    def _new_history(self) -> History:
        if self.stepper.terminates:
            return History()
        return History(limit=self.config.pendulum_history_limit)

    def _new_archive(self) -> Optional[History]:
        if self.stepper.terminates:
            return None
        return History(limit=self.config.archive_limit)
