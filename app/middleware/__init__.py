"""
Middleware modules for authentication, rate limiting and error handling
"""

from app.middleware.auth import get_current_user, require_admin, bearer_scheme
from app.middleware.rate_limiter import (
    FixedWindowRateLimiter,
    generate_limiter,
    auth_limiter,
    limit_generation,
    limit_auth,
)
from app.middleware.error_handler import register_exception_handlers

__all__ = [
    "get_current_user",
    "require_admin",
    "bearer_scheme",
    "FixedWindowRateLimiter",
    "generate_limiter",
    "auth_limiter",
    "limit_generation",
    "limit_auth",
    "register_exception_handlers",
]
