from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval polling; unbounded unless max_attempts is set."""

    interval_seconds: float = 1.0
    max_attempts: Optional[int] = None
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def poll(
        self,
        attempt: Callable[[], bool],
        on_failure: Optional[Callable[[int], None]] = None,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """
        Call ``attempt`` until it returns True.

        Returns False when attempts run out or ``should_continue`` says stop.
        ``on_failure`` receives the 1-based number of each failed attempt.
        """
        attempts = 0
        while True:
            if should_continue is not None and not should_continue():
                return False

            attempts += 1
            if attempt():
                return True

            if on_failure is not None:
                on_failure(attempts)

            if self.max_attempts is not None and attempts >= self.max_attempts:
                return False

            self.sleep(self.interval_seconds)


def policy_from_interval_ms(interval_ms: int, sleep: Optional[Callable[[float], None]] = None) -> RetryPolicy:
    interval_seconds = max(interval_ms / 1000.0, 0.05)
    if sleep is None:
        return RetryPolicy(interval_seconds=interval_seconds)
    return RetryPolicy(interval_seconds=interval_seconds, sleep=sleep)
