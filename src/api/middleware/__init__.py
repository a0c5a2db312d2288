"""HTTP middleware."""

from .body_limit import BodySizeLimitMiddleware
from .rate_limit import FixedWindowLimiter, RateLimitMiddleware
from .sanitize import SanitizeMiddleware, neutralize_markup

__all__ = [
    "BodySizeLimitMiddleware",
    "FixedWindowLimiter",
    "RateLimitMiddleware",
    "SanitizeMiddleware",
    "neutralize_markup",
]
