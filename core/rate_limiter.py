# core/rate_limiter.py

from collections import defaultdict
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple
import time

from fastapi import HTTPException, Request

from core.config import settings


class SlidingWindowLimiter:
    """
    In-memory sliding window, one bucket per identifier.
    Process-local; several workers each keep their own counts.
    """

    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.time):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, List[float]] = defaultdict(list)
        self._lock = Lock()

    def hit(self, identifier: str) -> Tuple[bool, int]:
        """
        Records one request.
        Returns (allowed, remaining).
        """
        now = self._clock()
        window_start = now - self.window_seconds

        with self._lock:
            hits = [ts for ts in self._hits[identifier] if ts > window_start]
            if len(hits) >= self.max_requests:
                self._hits[identifier] = hits
                return False, 0

            hits.append(now)
            self._hits[identifier] = hits
            return True, self.max_requests - len(hits)

    def reset(self):
        with self._lock:
            self._hits.clear()


# "Locked out / request access" emails
access_request_limiter = SlidingWindowLimiter(
    max_requests=settings.ACCESS_REQUEST_MAX,
    window_seconds=settings.ACCESS_REQUEST_WINDOW_SECONDS,
)


def get_rate_limit_identifier(request: Request, email: Optional[str] = None) -> str:
    """Prefers the email being acted on, otherwise the client IP."""
    if email:
        return f"email:{email}"

    client_ip = request.client.host if request.client else "unknown"

    # Behind a proxy the original client is the first forwarded address
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()

    return f"ip:{client_ip}"


def require_rate_limit(limiter: SlidingWindowLimiter, identifier: str) -> int:
    """
    Raises HTTPException 429 when the identifier is over its limit.
    """
    allowed, remaining = limiter.hit(identifier)

    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=(
                f"Rate limit exceeded. Maximum {limiter.max_requests} requests "
                f"per {limiter.window_seconds // 60} minutes."
            ),
            headers={
                "X-RateLimit-Limit": str(limiter.max_requests),
                "X-RateLimit-Window": str(limiter.window_seconds),
                "Retry-After": str(limiter.window_seconds),
            },
        )

    return remaining
