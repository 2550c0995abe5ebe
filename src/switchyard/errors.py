"""Switchyard exception hierarchy.

Shared across the route table, dispatcher, pipeline, and error mapper so
every module raises, returns, and maps the same types. Every error carries
an ``ErrorKind`` tag; the error mapper is the single place that turns
them into responses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar


class ErrorKind(Enum):
    """Tag identifying the category of a routing failure."""

    ROUTE_NOT_FOUND = "route_not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    DOMAIN_NOT_ALLOWED = "domain_not_allowed"
    MISSING_PARAMETER = "missing_parameter"
    HANDLER_RESOLUTION = "handler_resolution"
    MIDDLEWARE_RESOLUTION = "middleware_resolution"
    ROUTE_LOAD = "route_load"
    PERSISTENCE = "persistence"
    CONFIGURATION = "configuration"
    ROUTER = "router"
    INTERNAL = "internal"


class SwitchyardError(Exception):
    """Base for all switchyard-specific errors."""

    kind: ClassVar[ErrorKind] = ErrorKind.INTERNAL


class ConfigurationError(SwitchyardError):
    """Raised when router configuration is invalid.

    Fatal at initialization: an unusable cache directory or a routes
    directory containing a traversal segment.
    """

    kind = ErrorKind.CONFIGURATION


class PersistenceError(SwitchyardError):
    """The route cache file could not be read, written, or decoded.

    Never surfaced to a caller of ``Router.handle()``; the router absorbs
    it and rebuilds the route table from source.
    """

    kind = ErrorKind.PERSISTENCE


@dataclass(slots=True, eq=False)
class RouterError(SwitchyardError):
    """A routing failure that maps to an HTTP status.

    Routing outcomes are returned as values of this type and handed to the
    error mapper. Handlers and middleware may also raise them directly.
    """

    detail: str = ""
    status: int = 500
    headers: tuple[tuple[str, str], ...] = field(default=())

    kind: ClassVar[ErrorKind] = ErrorKind.ROUTER

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500


class RouteNotFoundError(RouterError):
    """404 — no candidate route matched, or its domain rejected the host.

    The error mapper forces 404 whatever status the error carries.
    """

    kind = ErrorKind.ROUTE_NOT_FOUND

    def __init__(self, detail: str = "Route not found", status: int = 404) -> None:
        super().__init__(detail=detail, status=status)


class MethodNotAllowedError(RouterError):
    """405 — the path matched, but not for this HTTP method.

    Carries an ``Allow`` header listing the methods that would match.
    """

    kind = ErrorKind.METHOD_NOT_ALLOWED

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            detail=detail or f"Method not allowed. Allowed methods: {allow_value}",
            status=405,
            headers=(("Allow", allow_value),),
        )
        self.allowed = allowed


class DomainNotAllowedError(RouterError):
    """403 — domain enforcement rejected the requesting host."""

    kind = ErrorKind.DOMAIN_NOT_ALLOWED

    def __init__(self, host: str) -> None:
        super().__init__(detail=f"Domain not allowed: {host}", status=403)


class MissingParameterError(RouterError):
    """400 — a required handler parameter had no value."""

    kind = ErrorKind.MISSING_PARAMETER

    def __init__(self, parameter: str) -> None:
        super().__init__(detail=f"Missing required parameter: {parameter}", status=400)
        self.parameter = parameter


class HandlerResolutionError(RouterError):
    """500 — the handler's target class or method does not exist."""

    kind = ErrorKind.HANDLER_RESOLUTION

    def __init__(self, detail: str) -> None:
        super().__init__(detail=detail, status=500)


class MiddlewareResolutionError(RouterError):
    """500 — a middleware declaration could not be adapted to the pipeline.

    The underlying failure is chained as ``__cause__``.
    """

    kind = ErrorKind.MIDDLEWARE_RESOLUTION

    def __init__(self, detail: str, cause: BaseException | None = None) -> None:
        super().__init__(detail=f"Failed to load middleware: {detail}", status=500)
        self.__cause__ = cause


class RouteLoadError(RouterError):
    """500 — a route-definition file failed while being executed.

    Aborts only the current load cycle.
    """

    kind = ErrorKind.ROUTE_LOAD

    def __init__(self, detail: str, cause: BaseException | None = None) -> None:
        super().__init__(detail=detail, status=500)
        self.__cause__ = cause
