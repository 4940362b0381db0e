"""Exceptions raised by the simulation core."""


class UnsupportedMotionModelError(ValueError):
    """A motion model tag has no stepper or evaluator mapped to it."""

    def __init__(self, motion: object):
        self.motion = motion
        super().__init__(f"Unsupported motion model: {motion!r}")
