"""
Request deadlines.

A Deadline is an absolute point on the monotonic clock. Flows check it
before each dependency call and hand the remaining budget to the store,
which cancels the statement and rolls back if it runs out.
"""

import time
from dataclasses import dataclass

from .exceptions import DeadlineExceeded


@dataclass(frozen=True)
class Deadline:
    """Absolute monotonic-clock deadline."""

    at: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(at=time.monotonic() + seconds)

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self.at - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.at

    def check(self) -> float:
        """
        Return the remaining budget in seconds.

        Raises:
            DeadlineExceeded: If the deadline has already passed
        """
        if self.expired:
            raise DeadlineExceeded("Deadline exceeded")
        return self.remaining()


def remaining_budget(deadline: Deadline | None) -> float | None:
    """Remaining seconds for a possibly absent deadline, raising if it passed."""
    if deadline is None:
        return None
    return deadline.check()
