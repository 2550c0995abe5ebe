"""Middleware pipeline — onion-model composition around a terminal handler.

Given middleware ``[A, B, C]`` and terminal handler ``H`` the composed
handler runs::

    A-before, B-before, C-before, H, C-after, B-after, A-after

Declarations are adapted to the ``(request, next) -> response`` shape
before any of them runs, so a bad declaration fails the request before
its first middleware executes.
"""

import inspect
from collections.abc import Callable, Sequence
from typing import Any

from switchyard._internal.imports import import_string
from switchyard._internal.types import MiddlewareSpec
from switchyard.errors import MiddlewareResolutionError
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.protocol import Middleware, Next, ProcessingMiddleware


def _check_shape(func: Callable[..., Any], declaration: MiddlewareSpec) -> None:
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return
    try:
        sig.bind(None, None)
    except TypeError as exc:
        msg = f"{declaration!r} does not accept (request, next)"
        raise MiddlewareResolutionError(msg, exc) from exc


def adapt_middleware(declaration: MiddlewareSpec) -> Middleware:
    """Adapt one middleware declaration to a ``(request, next)`` callable.

    Accepts a callable, an object with ``process(request, next)``, a class
    (instantiated with no arguments), or an import reference to any of
    these. Raises ``MiddlewareResolutionError`` otherwise.
    """
    obj = declaration
    if isinstance(obj, str):
        try:
            obj = import_string(obj)
        except ImportError as exc:
            raise MiddlewareResolutionError(str(exc), exc) from exc

    if inspect.isclass(obj):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"could not instantiate {declaration!r}: {exc}"
            raise MiddlewareResolutionError(msg, exc) from exc

    if isinstance(obj, ProcessingMiddleware):
        func = obj.process
    elif callable(obj):
        func = obj
    else:
        msg = f"{declaration!r} is not a middleware"
        raise MiddlewareResolutionError(msg)

    _check_shape(func, declaration)
    return func


class MiddlewareResolver:
    """Memoises adapted middleware per declaration for one router instance."""

    __slots__ = ("_adapted",)

    def __init__(self) -> None:
        self._adapted: dict[Any, Middleware] = {}

    def clear(self) -> None:
        self._adapted.clear()

    def resolve(self, declaration: MiddlewareSpec) -> Middleware:
        try:
            cached = self._adapted.get(declaration)
        except TypeError:
            # Unhashable declaration: adapt every time
            return adapt_middleware(declaration)
        if cached is None:
            cached = adapt_middleware(declaration)
            self._adapted[declaration] = cached
        return cached

    def resolve_all(
        self,
        declarations: Sequence[MiddlewareSpec],
    ) -> list[Middleware] | MiddlewareResolutionError:
        """Adapt every declaration, or return the first failure as a value."""
        try:
            return [self.resolve(declaration) for declaration in declarations]
        except MiddlewareResolutionError as exc:
            return exc


def build_pipeline(middleware: Sequence[Middleware], terminal: Next) -> Next:
    """Compose *middleware* around *terminal*; the first entry is outermost."""
    handler = terminal
    for mw in reversed(middleware):
        handler = _link(mw, handler)
    return handler


def _link(mw: Middleware, next_handler: Next) -> Next:
    def stage(request: Request) -> Response:
        return mw(request, next_handler)

    return stage
