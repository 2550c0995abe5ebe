"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The pipeline checks the shape, not the lineage.
Objects exposing ``process(request, next)`` are accepted as well.

Everything runs synchronously: "before" work happens ahead of the call to
``next``, "after" work once ``next`` returns.
"""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from switchyard.http.request import Request
from switchyard.http.response import Response

# The next handler in the middleware chain
type Next = Callable[[Request], Response]


class Middleware(Protocol):
    """Protocol for switchyard middleware.

    Accepts both functions and callable objects::

        # Function middleware
        def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RequireJSON:
            def __call__(self, request: Request, next: Next) -> Response:
                ...
    """

    def __call__(self, request: Request, next: Next) -> Response: ...


@runtime_checkable
class ProcessingMiddleware(Protocol):
    """Middleware object exposing a ``process`` method instead of ``__call__``."""

    def process(self, request: Request, next: Next) -> Response: ...
