"""Exponential backoff state for receive retries."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ExponentialBackoff:
    """Doubling retry delay with a floor and a cap, in seconds.

    ``next_delay()`` hands out the current delay and escalates the stored one,
    so consecutive calls yield ``min(initial * multiplier ** (n - 1), maximum)``.
    ``reset()`` returns to the floor after any successful receive.
    """

    initial: float = 0.1
    maximum: float = 15.0
    multiplier: float = 2.0
    current: float = field(init=False)

    def __post_init__(self) -> None:
        if self.initial <= 0:
            raise ValueError("initial must be > 0")
        if self.maximum < self.initial:
            raise ValueError("maximum must be >= initial")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        self.current = self.initial

    def next_delay(self) -> float:
        delay = self.current
        self.current = min(self.current * self.multiplier, self.maximum)
        return delay

    def reset(self) -> None:
        self.current = self.initial
