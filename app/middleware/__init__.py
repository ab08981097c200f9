"""
Middleware package for the InstaProperty API.
"""

from .timing import RequestTimingMiddleware

__all__ = [
    "RequestTimingMiddleware",
]
