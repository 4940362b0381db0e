"""
Dual-world scheduler for compare mode.

Two worlds share one driving loop. Each tick steps world A, then world
B, and only then publishes a combined snapshot, so a consumer can never
observe one world a tick ahead of the other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

import structlog

from kinelab.config import SimulationConfig
from kinelab.models.params import Params, with_param
from kinelab.world.loop import FrameDriver, FrameSource
from kinelab.world.world import EventCallback, World, WorldSnapshot

logger = structlog.get_logger(__name__)

# Launch speed and angle are shared between the two worlds by default
DEFAULT_LINKED = frozenset({"v0", "angle"})


@dataclass(frozen=True)
class CompareSnapshot:
    """Both worlds as of the same completed tick."""

    a: WorldSnapshot
    b: WorldSnapshot
    running: bool = False
    tick: int = 0


class DualWorldScheduler:
    """
    Drives worlds A and B in lockstep.

    ``running`` stays true until both worlds have landed; a pendulum
    world never lands, so a compare run containing one runs until paused.
    """

    def __init__(
        self,
        params_a: Params,
        params_b: Params,
        config: Optional[SimulationConfig] = None,
        frame_source: Optional[FrameSource] = None,
        linked: Iterable[str] = DEFAULT_LINKED,
        on_event: Optional[EventCallback] = None,
    ):
        self.world_a = World(params_a, config, name="A", on_event=on_event)
        self.world_b = World(params_b, config, name="B", on_event=on_event)
        self.linked = frozenset(linked)
        self.logger = structlog.get_logger(__name__)

        self._driver = FrameDriver(frame_source, self._on_frame) if frame_source else None
        self._running = False
        self._tick = 0
        self._publish()

    @property
    def worlds(self) -> tuple[World, World]:
        return (self.world_a, self.world_b)

    def world(self, key: str) -> World:
        """Look up a world by its key, ``"a"`` or ``"b"``."""
        worlds = {"a": self.world_a, "b": self.world_b}
        try:
            return worlds[key.lower()]
        except KeyError:
            raise ValueError(f"Unknown world: {key}") from None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def snapshot(self) -> CompareSnapshot:
        return self._snapshot

    @property
    def settled(self) -> bool:
        """True once every world has reached a terminal state."""
        return all(w.stepper.terminates and w.landed for w in self.worlds)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def set_param(self, key: str, name: str, value: Any) -> None:
        """
        Set a parameter on one world.

        Linked parameters are mirrored to the other world when its motion
        model has the field; everything else stays independent per world.
        Both parameter sets are validated before either world is touched.
        """
        target = self.world(key)
        updates = {target.name: with_param(target.params, name, value)}
        if name in self.linked:
            for world in self.worlds:
                if world is not target and name in type(world.params).model_fields:
                    updates[world.name] = with_param(world.params, name, value)
        self._apply(updates)

    def set_shared_param(self, name: str, value: Any) -> None:
        """Set the same parameter on both worlds, or on neither if either rejects it."""
        self._apply({world.name: with_param(world.params, name, value) for world in self.worlds})

    def _apply(self, updates: dict[str, Params]) -> None:
        for world in self.worlds:
            if world.name in updates:
                world.set_params(updates[world.name])

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Re-initialize both worlds from their current parameters and run."""
        if self._running:
            return

        for world in self.worlds:
            world.restart()
        self._running = True
        self._tick = 0
        self._publish()
        if self._driver:
            self._driver.start()

        self.logger.info(
            "Compare run started",
            motion_a=self.world_a.params.motion.value,
            motion_b=self.world_b.params.motion.value,
        )

    def pause(self) -> None:
        if self._driver:
            self._driver.stop()
        self._running = False
        for world in self.worlds:
            world.pause()
        self._publish()

    def reset(self, keep_ghost: bool = True) -> None:
        self.pause()
        for world in self.worlds:
            world.reset(keep_ghost=keep_ghost)
        self._tick = 0
        self._publish()
        self.logger.info("Compare run reset")

    def tick(self) -> CompareSnapshot:
        """Step A then B once, then publish the combined snapshot."""
        if not self._running:
            return self._snapshot

        self.world_a.step()
        self.world_b.step()
        self._tick += 1

        if self.settled:
            self.logger.info("Both worlds landed", ticks=self._tick)
            self.pause()
        else:
            self._publish()
        return self._snapshot

    def run(self, max_ticks: int = 10_000) -> CompareSnapshot:
        """Tick headlessly until both worlds settle or ``max_ticks`` is hit."""
        self.start()
        ticks = 0
        while self._running and ticks < max_ticks:
            self.tick()
            ticks += 1
        self.pause()
        return self._snapshot

    def _publish(self) -> None:
        self._snapshot = CompareSnapshot(
            a=self.world_a.snapshot,
            b=self.world_b.snapshot,
            running=self._running,
            tick=self._tick,
        )

    def _on_frame(self) -> bool:
        self.tick()
        return self._running
