"""Absolute invocation deadline."""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class Deadline:
    """A fixed point on the monotonic clock.

    ``when`` is comparable with ``asyncio`` loop time, so it can be passed
    straight to ``asyncio.timeout_at``.
    """

    when: float
    budget_seconds: float

    @classmethod
    def after(cls, seconds: float) -> Deadline:
        return cls(when=time.monotonic() + seconds, budget_seconds=seconds)

    def remaining(self) -> float:
        return max(0.0, self.when - time.monotonic())

    def expired(self) -> bool:
        return time.monotonic() >= self.when
