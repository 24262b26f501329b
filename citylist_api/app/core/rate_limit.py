"""
Per client IP rate limiting.

Every client address gets a token bucket holding ``limit`` tokens that
refill continuously over ``period`` seconds; a request costs one
token.  With the defaults a client may send 100 requests per minute,
in bursts of up to 100.

Buckets live in process memory.  Buckets that have refilled
completely carry no state and are pruned once the table grows past
``max_clients``.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Dict


logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
DEFAULT_PERIOD_SECONDS = 60.0
DEFAULT_MAX_CLIENTS = 10_000


@dataclass
class TokenBucket:
    """Token bucket refilled at ``rate`` tokens per second up to ``capacity``."""

    rate: float
    capacity: int
    tokens: float = 0.0
    last_update: float = field(default_factory=time.monotonic)

    def __post_init__(self):
        self.tokens = float(self.capacity)

    def _refill(self, now: float) -> None:
        elapsed = now - self.last_update
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_update = now

    def allow(self, now: float, cost: float = 1.0) -> bool:
        self._refill(now)
        if self.tokens >= cost:
            self.tokens -= cost
            return True
        return False

    def retry_after(self, cost: float = 1.0) -> int:
        """Whole seconds until ``cost`` tokens are available again."""
        missing = max(cost - self.tokens, 0.0)
        return max(1, math.ceil(missing / self.rate))

    def is_full(self, now: float) -> bool:
        self._refill(now)
        return self.tokens >= self.capacity


class RateLimiter:
    """Token bucket limiter keyed by client address.

    Parameters
    ----------
    limit : int
        Requests allowed per ``period``.  ``0`` disables limiting.
    period : float
        Window in seconds over which ``limit`` tokens refill.
    """

    def __init__(self, limit: int = DEFAULT_LIMIT, period: float = DEFAULT_PERIOD_SECONDS,
                 max_clients: int = DEFAULT_MAX_CLIENTS):
        self.limit = limit
        self.period = period
        self.max_clients = max_clients
        self._buckets: Dict[str, TokenBucket] = {}

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    def check(self, client: str) -> int:
        """Consume one token for ``client``.

        Returns ``0`` when the request is allowed, otherwise the number
        of seconds the client should wait before retrying.
        """
        if not self.enabled:
            return 0
        now = time.monotonic()
        bucket = self._buckets.get(client)
        if bucket is None:
            if len(self._buckets) >= self.max_clients:
                self._prune(now)
            bucket = TokenBucket(rate=self.limit / self.period, capacity=self.limit, last_update=now)
            self._buckets[client] = bucket
        if bucket.allow(now):
            return 0
        logger.warning("Rate limit exceeded for %s", client)
        return bucket.retry_after()

    def _prune(self, now: float) -> None:
        idle = [client for client, bucket in self._buckets.items() if bucket.is_full(now)]
        for client in idle:
            del self._buckets[client]
        logger.debug("Pruned %s idle rate limit buckets", len(idle))
