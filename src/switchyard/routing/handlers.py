"""Handler resolution — turn a route's handler reference into a callable.

Inline handlers are ready at registration. Class handlers name their
target by class or import reference; the class and method are looked up
once per handler reference and the result (including the method's
parameter descriptors) is memoised by the resolver. Every request gets a
fresh controller instance.
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from switchyard._internal.imports import import_string
from switchyard.errors import HandlerResolutionError
from switchyard.routing.params import Param, describe_parameters
from switchyard.routing.route import InlineHandler, MethodHandler, Route


@dataclass(frozen=True, slots=True)
class ResolvedHandler:
    """A handler ready to call: a factory for the callable plus its descriptors."""

    factory: Callable[[], Callable[..., Any]]
    params: tuple[Param, ...]

    def __call__(self, **kwargs: Any) -> Any:
        return self.factory()(**kwargs)


class HandlerResolver:
    """Resolves and memoises class handlers for one router instance."""

    __slots__ = ("_resolved",)

    def __init__(self) -> None:
        self._resolved: dict[tuple[Any, str, tuple[str, ...]], ResolvedHandler] = {}

    def clear(self) -> None:
        self._resolved.clear()

    def resolve(self, route: Route) -> ResolvedHandler | HandlerResolutionError:
        """Resolve *route*'s handler, or return the failure as a value."""
        handler = route.handler
        if isinstance(handler, InlineHandler):
            func = handler.func
            params = route.params
            if params is None:
                params = describe_parameters(func, route.variables)
            return ResolvedHandler(factory=lambda: func, params=params)

        key = (handler.target, handler.method, route.variables)
        cached = self._resolved.get(key)
        if cached is not None:
            return cached

        result = _resolve_method(handler, route.variables)
        if isinstance(result, ResolvedHandler):
            self._resolved[key] = result
        return result


def _resolve_method(
    handler: MethodHandler,
    variables: tuple[str, ...],
) -> ResolvedHandler | HandlerResolutionError:
    target = handler.target
    if isinstance(target, str):
        try:
            target = import_string(target)
        except ImportError:
            return HandlerResolutionError(f"Class not found: {handler.target}")
    if not inspect.isclass(target):
        return HandlerResolutionError(f"Class not found: {handler.target_ref}")

    method_name = handler.method
    if not callable(getattr(target, method_name, None)):
        return HandlerResolutionError(
            f"Method not found: {method_name} in {handler.target_ref}"
        )

    raw = inspect.getattr_static(target, method_name)
    params = describe_parameters(
        getattr(target, method_name),
        variables,
        skip_first=not isinstance(raw, staticmethod | classmethod),
    )
    cls = target

    def factory() -> Callable[..., Any]:
        return getattr(cls(), method_name)

    return ResolvedHandler(factory=factory, params=params)
