"""Route, handler reference, and route-name frozen dataclasses."""

from __future__ import annotations

import inspect
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from switchyard._internal.imports import import_string, reference_of
from switchyard.errors import ConfigurationError, PersistenceError
from switchyard.routing.params import Param

# {name} or {name:constraint} placeholders in a path or domain pattern
PLACEHOLDER_RE = re.compile(r"\{([a-zA-Z_]\w*)(?::[^{}]*(?:\{[^{}]*\}[^{}]*)*)?\}")


@dataclass(frozen=True, slots=True)
class InlineHandler:
    """A handler given as a callable (function, lambda, closure)."""

    func: Callable[..., Any]


@dataclass(frozen=True, slots=True)
class MethodHandler:
    """A handler given as a class plus the name of the method to call.

    ``target`` is either the class itself or an import reference such as
    ``"myapp.controllers:UserController"``. A fresh instance is created for
    every request.
    """

    target: type | str
    method: str

    @property
    def target_ref(self) -> str:
        if isinstance(self.target, str):
            return self.target
        return reference_of(self.target) or self.target.__qualname__


type HandlerRef = InlineHandler | MethodHandler


def to_handler(
    handler: Any,
    *,
    cls: type | str | None = None,
    default_method: str = "process",
) -> HandlerRef:
    """Normalize the accepted handler shapes into a tagged handler reference.

    Accepted shapes::

        lambda request: ...                      -> InlineHandler
        (UserController, "show")                 -> MethodHandler
        "myapp.controllers:UserController@show"  -> MethodHandler
        UserController                           -> MethodHandler(..., default_method)
        "show" with cls=UserController           -> MethodHandler
    """
    if isinstance(handler, InlineHandler | MethodHandler):
        return handler
    if isinstance(handler, tuple | list) and len(handler) == 2:
        target, method = handler
        return MethodHandler(target, str(method))
    if isinstance(handler, str):
        if cls is not None:
            return MethodHandler(cls, handler)
        target, sep, method = handler.partition("@")
        return MethodHandler(target, method if sep else default_method)
    if inspect.isclass(handler):
        return MethodHandler(handler, default_method)
    if handler is None and cls is not None:
        return MethodHandler(cls, default_method)
    if callable(handler):
        return InlineHandler(handler)
    msg = f"Unsupported route handler: {handler!r}"
    raise ConfigurationError(msg)


def normalize_path(path: str) -> str:
    """Ensure a leading slash and strip the trailing one (except for root)."""
    if not path.startswith("/"):
        path = "/" + path
    if path != "/":
        path = path.rstrip("/") or "/"
    return path


def placeholder_names(pattern: str | None) -> tuple[str, ...]:
    """Names of the ``{placeholders}`` in a path or domain pattern, in order."""
    if not pattern:
        return ()
    return tuple(PLACEHOLDER_RE.findall(pattern))


def generate_name(method: str, path: str) -> str:
    """Build a route name from method and path.

    ``GET /users/{id}`` -> ``get.users.id``, ``GET /`` -> ``get.root``.
    """
    clean = path.strip("/")
    clean = PLACEHOLDER_RE.sub(lambda m: m.group(1), clean)
    clean = clean.replace("/", ".").replace("-", ".")
    return f"{method.lower()}.{clean or 'root'}"


def middleware_marker(middleware: Any) -> str:
    """Stable identity marker of a middleware declaration.

    Closures collapse to ``"closure"`` so two registrations with the same
    shape produce the same content hash.
    """
    if isinstance(middleware, str):
        return middleware
    if inspect.isfunction(middleware) or inspect.isclass(middleware):
        return reference_of(middleware) or "closure"
    if inspect.ismethod(middleware):
        return reference_of(middleware.__func__) or "closure"
    return reference_of(type(middleware)) or "closure"


def _importable_reference(obj: Any) -> str | None:
    """The import reference of *obj*, only if importing it yields *obj* again."""
    ref = reference_of(obj)
    if ref is None:
        return None
    try:
        resolved = import_string(ref)
    except ImportError:
        return None
    return ref if resolved is obj else None


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route. Never mutated after registration.

    ``params`` holds the parameter descriptors of an inline handler; class
    handlers are described when first resolved and carry ``None``.
    """

    method: str
    path: str
    handler: HandlerRef
    middleware: tuple[Any, ...] = ()
    name: str | None = None
    domain: str | None = None
    params: tuple[Param, ...] | None = None

    @property
    def key(self) -> str:
        """``METHOD:path`` key used for precedence between candidates."""
        return f"{self.method}:{self.path}"

    @property
    def variables(self) -> tuple[str, ...]:
        """Names of every path and domain placeholder of this route."""
        return placeholder_names(self.domain) + placeholder_names(self.path)

    def shape(self) -> dict[str, Any]:
        """Reproducible description used for content hashing."""
        if isinstance(self.handler, MethodHandler):
            cls, handler = self.handler.target_ref, self.handler.method
        else:
            cls, handler = "", "closure"
        return {
            "method": self.method,
            "path": self.path,
            "class": cls,
            "handler": handler,
            "middleware": [middleware_marker(mw) for mw in self.middleware],
            "name": self.name,
            "domain": self.domain,
        }

    # -- Serialization --

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the route cache.

        Raises ``PersistenceError`` for inline handlers, and for handler
        classes and middleware whose import reference does not resolve back
        to the same object (lambdas, local classes, objects defined in a
        route file).
        """
        if not isinstance(self.handler, MethodHandler):
            msg = f"Inline handler of {self.method} {self.path} cannot be persisted"
            raise PersistenceError(msg)
        target = self.handler.target
        if isinstance(target, str):
            class_ref = target
        else:
            class_ref = _importable_reference(target)
            if class_ref is None:
                msg = f"Handler class {target!r} of {self.method} {self.path} is not importable"
                raise PersistenceError(msg)
        middleware: list[str] = []
        for mw in self.middleware:
            if isinstance(mw, str):
                middleware.append(mw)
                continue
            ref = None
            if inspect.isfunction(mw) or inspect.isclass(mw):
                ref = _importable_reference(mw)
            if ref is None:
                msg = f"Middleware {mw!r} of {self.method} {self.path} cannot be persisted"
                raise PersistenceError(msg)
            middleware.append(ref)
        return {
            "method": self.method,
            "path": self.path,
            "class": class_ref,
            "handler": self.handler.method,
            "middleware": middleware,
            "name": self.name,
            "domain": self.domain,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Route:
        """Rebuild a route serialized by ``to_dict()``.

        Handler and middleware references stay as import strings and are
        resolved on first dispatch.
        """
        return cls(
            method=str(data["method"]).upper(),
            path=normalize_path(str(data["path"])),
            handler=MethodHandler(str(data["class"]), str(data["handler"])),
            middleware=tuple(str(mw) for mw in data.get("middleware", ())),
            name=data.get("name"),
            domain=data.get("domain"),
        )


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match.

    ``variables`` holds the domain variables overridden by the path variables.
    """

    route: Route
    variables: dict[str, str]
