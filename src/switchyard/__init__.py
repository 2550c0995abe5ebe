"""Switchyard — route composition and request dispatch.

Groups nest prefixes, middleware, names, and domains; domain patterns
capture subdomain variables; each host gets its own compiled dispatcher,
and the route table can be persisted across restarts.

Basic usage::

    from switchyard import Request, Router

    router = Router()

    with router.group(prefix="/api", domain="{tenant}.example.com"):
        router.get("/users/{id}", lambda tenant, id: {"tenant": tenant, "id": id})

    response = router.handle(Request.from_url("GET", "http://acme.example.com/api/users/7"))
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "ErrorFormatter",
    "HTMLErrorFormatter",
    "JSONErrorFormatter",
    "Middleware",
    "Next",
    "Request",
    "Response",
    "Route",
    "RouteCache",
    "Router",
    "RouterConfig",
    "RouterError",
    "SwitchyardError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import switchyard`` fast while providing a clean top-level API.
    """
    if name == "Router":
        from switchyard.router import Router

        return Router

    if name == "RouterConfig":
        from switchyard.config import RouterConfig

        return RouterConfig

    if name == "Request":
        from switchyard.http.request import Request

        return Request

    if name == "Response":
        from switchyard.http.response import Response

        return Response

    if name == "Route":
        from switchyard.routing.route import Route

        return Route

    if name == "RouteCache":
        from switchyard.routing.cache import RouteCache

        return RouteCache

    if name in ("ErrorFormatter", "HTMLErrorFormatter", "JSONErrorFormatter"):
        from switchyard.server import formatters as _fmt

        return getattr(_fmt, name)

    if name in ("Middleware", "Next"):
        from switchyard.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("ConfigurationError", "RouterError", "SwitchyardError"):
        from switchyard import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
