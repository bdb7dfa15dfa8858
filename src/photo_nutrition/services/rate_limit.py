"""In-process fixed-window rate limiting per client identifier."""

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

RATE_LIMIT_WINDOW_SECONDS = 15 * 60
PHOTO_RATE_LIMIT_MAX = 20
ESTIMATE_RATE_LIMIT_MAX = 30

_logger = logging.getLogger(__name__)


@dataclass
class ClientQuota:
    """Request count for one client inside the current window."""

    window_start: float
    count: int


@dataclass(frozen=True)
class AdmissionDecision:
    """Result of an admission check."""

    allowed: bool
    remaining: int
    retry_after_seconds: int | None = None


@dataclass
class RateLimiter:
    """Coarse abuse guard keyed by client identifier.

    State lives in this process only; separate workers each keep their own counts.
    Quotas whose window has lapsed are swept at most once per window, so the map only
    holds clients seen recently.
    """

    max_requests: int = PHOTO_RATE_LIMIT_MAX
    window_seconds: float = RATE_LIMIT_WINDOW_SECONDS
    clock: Callable[[], float] = time.monotonic
    _quotas: dict[str, ClientQuota] = field(default_factory=dict, init=False)
    _last_sweep: float | None = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def admit(self, client_id: str) -> AdmissionDecision:
        """Count a request and decide whether it may proceed."""
        with self._lock:
            now = self.clock()
            self._sweep_expired(now)
            quota = self._quotas.get(client_id)
            if quota is None or now - quota.window_start > self.window_seconds:
                self._quotas[client_id] = ClientQuota(window_start=now, count=1)
                return AdmissionDecision(
                    allowed=True, remaining=self.max_requests - 1
                )

            quota.count += 1
            if quota.count <= self.max_requests:
                return AdmissionDecision(
                    allowed=True, remaining=self.max_requests - quota.count
                )

            retry_after = math.ceil(quota.window_start + self.window_seconds - now)
        _logger.info(
            "Rate limit exceeded: client=%s retry_after=%s", client_id, retry_after
        )
        return AdmissionDecision(
            allowed=False, remaining=0, retry_after_seconds=max(retry_after, 1)
        )

    def _sweep_expired(self, now: float) -> None:
        if self._last_sweep is None:
            self._last_sweep = now
            return
        if now - self._last_sweep < self.window_seconds:
            return
        expired = [
            client_id
            for client_id, quota in self._quotas.items()
            if now - quota.window_start > self.window_seconds
        ]
        for client_id in expired:
            del self._quotas[client_id]
        self._last_sweep = now
        if expired:
            _logger.debug("Dropped %d expired rate limit quotas", len(expired))

    def quota_for(self, client_id: str) -> ClientQuota | None:
        """Return a copy of the tracked quota for a client, if any."""
        with self._lock:
            quota = self._quotas.get(client_id)
            if quota is None:
                return None
            return ClientQuota(window_start=quota.window_start, count=quota.count)
