"""Per-connection message throttling."""

import time
from collections.abc import Callable


class TokenBucket:
    """Token bucket: `rate` tokens per second refill, at most `burst` stored.

    Every inbound websocket message costs one token. The clock is
    injectable so tests can advance time without sleeping.
    """

    def __init__(self, rate: float, burst: int, clock: Callable[[], float] = time.monotonic) -> None:
        if rate <= 0 or burst < 1:
            raise ValueError("rate must be positive and burst at least 1")
        self._rate = rate
        self._burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._updated_at = clock()

    @property
    def tokens(self) -> float:
        self._refill()
        return self._tokens

    def consume(self) -> bool:
        """Take one token. False means the caller should drop the message."""
        self._refill()
        if self._tokens < 1.0:
            return False
        self._tokens -= 1.0
        return True

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(float(self._burst), self._tokens + (now - self._updated_at) * self._rate)
        self._updated_at = now
