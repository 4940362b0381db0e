"""
Frame-paced driving loop.

Worlds never measure elapsed wall-clock time: a frame source only decides
*when* the next tick happens, while every tick advances physics by the
same fixed timestep. A driver keeps at most one frame request pending and
withdraws it on stop, so pausing or resetting never leaves a stray
callback behind.
"""

from __future__ import annotations

import asyncio
import itertools
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

FrameCallback = Callable[[], None]


class FrameSource(ABC):
    """Schedules callbacks for the next display frame."""

    @abstractmethod
    def request(self, callback: FrameCallback) -> Any:
        """Schedule ``callback`` for the next frame and return a cancel handle."""

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Withdraw a pending request. Unknown or fired handles are ignored."""


class ManualFrameSource(FrameSource):
    """
    Frame source advanced explicitly by the caller.

    Used for headless runs and tests: ``advance`` fires whatever was
    pending at the start of each frame.
    """

    def __init__(self):
        self._pending: dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)
        self.frames = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def advance(self, frames: int = 1) -> int:
        """Fire ``frames`` display frames; returns how many had work to do."""
        fired = 0
        for _ in range(frames):
            if not self._pending:
                break
            due = list(self._pending.items())
            self._pending.clear()
            self.frames += 1
            fired += 1
            for _, callback in due:
                callback()
        return fired


class AsyncioFrameSource(FrameSource):
    """Frame source backed by an asyncio event loop timer."""

    def __init__(self, interval: float = 1 / 60, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.interval = interval
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def request(self, callback: FrameCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(self.interval, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


class FrameDriver:
    """
    Re-arms a frame request after every tick until told to stop.

    ``on_frame`` returns False to end the loop on its own (a landed
    projectile, both compare worlds settled).
    """

    def __init__(self, source: FrameSource, on_frame: Callable[[], bool]):
        self.source = source
        self.on_frame = on_frame
        self._handle: Any = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is None:
            self._handle = self.source.request(self._fire)

    def stop(self) -> None:
        if self._handle is not None:
            self.source.cancel(self._handle)
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        keep_going = self.on_frame()
        # on_frame may itself have stopped or restarted the loop
        if keep_going and self._handle is None:
            self._handle = self.source.request(self._fire)
