"""
Factory for creating rate limiting components.
"""

from flask import Flask, jsonify, request

from .limiter import RateLimiter, get_client_ip

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def create_rate_limit_module(rate_limit_config, path_prefix: str = "/api/") -> dict:
    """
    Create rate limiting module.

    Args:
        rate_limit_config: RateLimitConfig with window and limit
        path_prefix: Only requests under this prefix are counted

    Returns:
        Dictionary with:
        - limiter: RateLimiter instance
        - register: callable installing the before_request hook on an app
    """
    limiter = RateLimiter(
        window_seconds=rate_limit_config.window_seconds,
        max_requests=rate_limit_config.max_requests,
    )

    def register(app: Flask) -> None:
        if not rate_limit_config.enabled:
            return

        @app.before_request
        def enforce_rate_limit():
            if not request.path.startswith(path_prefix):
                return None
            result = limiter.check_and_consume(get_client_ip())
            if result.allowed:
                return None
            response = jsonify({"success": False, "error": RATE_LIMIT_MESSAGE})
            response.status_code = 429
            response.headers.update(result.to_headers())
            return response

    return {
        "limiter": limiter,
        "register": register
    }
