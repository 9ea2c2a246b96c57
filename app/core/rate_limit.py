"""
Rate limiting for the API.

Every request goes through a per-client-IP token bucket (RateLimiter /
RateLimitMiddleware). Login additionally has a strict slowapi limit.
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional

from fastapi import Request
from slowapi import Limiter
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.core.config import settings
from app.core.errors import RateLimitExceededError, error_response


logger = logging.getLogger(__name__)

# Strict rate limiting for credential checks
AUTH_RATE_LIMIT = "5/minute"  # 5 login attempts per minute per IP


def get_client_ip(request: Request) -> str:
    """
    Extract client IP from request. Proxy headers are only honoured when the
    deployment sits behind a trusted proxy.
    """
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            # X-Forwarded-For can contain multiple IPs, take the first
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    if request.client:
        return request.client.host

    return "unknown"


# slowapi limiter used by the login endpoint
limiter = Limiter(key_func=get_client_ip, enabled=settings.limiter_enabled)


class TokenBucket:
    """Bucket refilled at `rate` tokens per second up to `capacity`."""

    def __init__(self, rate: float, capacity: int, now: float) -> None:
        self.rate = rate
        self.capacity = capacity
        self.tokens = float(capacity)
        self.updated_at = now
        self.last_seen = now

    def allow(self, now: float) -> bool:
        elapsed = max(0.0, now - self.updated_at)
        self.tokens = min(float(self.capacity), self.tokens + elapsed * self.rate)
        self.updated_at = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True
        return False


class RateLimiter:
    """
    Table of token buckets keyed by client IP.

    The lock covers bucket lookup/creation and the idle sweep only; the
    downstream request is never handled while holding it.
    """

    def __init__(
        self,
        rps: float,
        burst: int,
        idle_timeout: float = 180.0,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.rps = rps
        self.burst = burst
        self.idle_timeout = idle_timeout
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._clients: Dict[str, TokenBucket] = {}
        self._sweeper: Optional[threading.Thread] = None

    def allow(self, ip: str) -> bool:
        now = self._clock()
        with self._lock:
            bucket = self._clients.get(ip)
            if bucket is None:
                bucket = TokenBucket(self.rps, self.burst, now)
                self._clients[ip] = bucket
            bucket.last_seen = now
            return bucket.allow(now)

    def sweep(self) -> int:
        """Evict clients idle for longer than `idle_timeout`. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            idle = [ip for ip, bucket in self._clients.items() if now - bucket.last_seen > self.idle_timeout]
            for ip in idle:
                del self._clients[ip]
        if idle:
            logger.debug("Rate limiter evicted %d idle clients", len(idle))
        return len(idle)

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def _run_sweeper(self) -> None:
        while True:
            time.sleep(self.sweep_interval)
            self.sweep()

    def start(self) -> None:
        """Start the background sweep; it runs for the lifetime of the process."""
        if self._sweeper is not None:
            return
        self._sweeper = threading.Thread(target=self._run_sweeper, name="rate-limiter-sweep", daemon=True)
        self._sweeper.start()


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, rate_limiter: RateLimiter, enabled: bool = True) -> None:
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next) -> Response:
        if self.enabled and not self.rate_limiter.allow(get_client_ip(request)):
            return error_response(RateLimitExceededError.status_code, RateLimitExceededError.message)
        return await call_next(request)
