"""
Rate Limiting Module

Fixed-window, per-IP request limiting for the /api/ routes.
"""

from .factory import create_rate_limit_module
from .limiter import RateLimiter, get_client_ip
from .models import RateLimitResult

__all__ = ["create_rate_limit_module", "RateLimiter", "RateLimitResult", "get_client_ip"]
