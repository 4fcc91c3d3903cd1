"""
Data models for the rate limiting subsystem.
"""

from dataclasses import dataclass


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    allowed: bool
    limit: int
    remaining: int
    reset_in: float  # Seconds until the current window closes

    def to_headers(self) -> dict:
        """Standard rate limit response headers."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(max(0, self.remaining)),
            "X-RateLimit-Reset": str(int(self.reset_in + 0.999)),
        }


@dataclass
class WindowUsage:
    """Request count of one client within the current window."""
    window_start: float
    count: int
