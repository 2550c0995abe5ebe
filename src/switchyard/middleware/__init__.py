"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    def mw(request: Request, next: Next) -> Response

or an object with a ``process(request, next)`` method, or an import
reference (``"myapp.middleware:Auth"``) to either.
"""

from switchyard.middleware.pipeline import build_pipeline
from switchyard.middleware.protocol import Middleware, Next, ProcessingMiddleware

__all__ = [
    "Middleware",
    "Next",
    "ProcessingMiddleware",
    "build_pipeline",
]
