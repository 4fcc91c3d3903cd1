"""
Rate limiter for per-IP request throttling.
"""

import logging
import time
from threading import Lock
from typing import Callable, Dict

from flask import request

from .models import RateLimitResult, WindowUsage

logger = logging.getLogger(__name__)


def get_client_ip() -> str:
    """Get client IP address, handling proxy headers."""
    if request.headers.get('X-Forwarded-For'):
        return request.headers.get('X-Forwarded-For').split(',')[0].strip()
    elif request.headers.get('X-Real-IP'):
        return request.headers.get('X-Real-IP')
    else:
        return request.remote_addr or "unknown"


class RateLimiter:
    """
    Fixed-window request counter keyed by client IP.

    State is in-process only; a restart resets every window.
    """

    def __init__(
        self,
        window_seconds: float = 3600,
        max_requests: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._lock = Lock()
        self._usage: Dict[str, WindowUsage] = {}

    def check_and_consume(self, ip: str) -> RateLimitResult:
        """
        Count one request for ``ip`` and report whether it is allowed.

        Args:
            ip: Client IP address

        Returns:
            RateLimitResult with allowed status and remaining budget
        """
        now = self._clock()
        with self._lock:
            usage = self._usage.get(ip)
            if usage is None or now - usage.window_start >= self.window_seconds:
                usage = WindowUsage(window_start=now, count=0)
                self._usage[ip] = usage
                self._prune(now)

            reset_in = self.window_seconds - (now - usage.window_start)
            if usage.count >= self.max_requests:
                logger.info(f"Rate limit exceeded: ip={ip}, count={usage.count}")
                return RateLimitResult(allowed=False, limit=self.max_requests, remaining=0, reset_in=reset_in)

            usage.count += 1
            return RateLimitResult(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - usage.count,
                reset_in=reset_in,
            )

    def _prune(self, now: float) -> None:
        """Drop expired windows. Caller must hold the lock."""
        expired = [ip for ip, usage in self._usage.items() if now - usage.window_start >= self.window_seconds]
        for ip in expired:
            del self._usage[ip]

    def reset(self) -> None:
        with self._lock:
            self._usage.clear()
