"""Router — the component that owns routes and dispatches requests.

Routes are registered programmatically (verb helpers, the ``route``
decorator, ``register_routes``) or loaded from route files. A request
runs through::

    initialise routes (persisted cache, else route files)
      -> normalise path
      -> domain enforcement
      -> per-host dispatcher
      -> route domain check
      -> middleware pipeline -> handler -> response

Routing outcomes are returned as error values and mapped to responses in
one place; anything raised by user code is caught at ``handle()``.
"""

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any
from urllib.parse import unquote

from switchyard._internal.types import Handler, MiddlewareSpec
from switchyard.config import RouterConfig
from switchyard.errors import (
    DomainNotAllowedError,
    MethodNotAllowedError,
    PersistenceError,
    RouteLoadError,
    RouteNotFoundError,
    RouterError,
)
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.pipeline import MiddlewareResolver
from switchyard.routing.cache import RouteCache
from switchyard.routing.dispatch import DispatcherCache
from switchyard.routing.domain import (
    NO_MATCH,
    compile_domain,
    has_placeholders,
    is_allowed,
    match_domain,
)
from switchyard.routing.group import GroupScope, GroupStack
from switchyard.routing.handlers import HandlerResolver
from switchyard.routing.loader import load_route_files, validate_routes_directory
from switchyard.routing.matcher import Found, PathMatcher, WrongMethod
from switchyard.routing.params import describe_parameters, merge_variables
from switchyard.routing.route import (
    InlineHandler,
    Route,
    RouteMatch,
    generate_name,
    normalize_path,
    placeholder_names,
    to_handler,
)
from switchyard.routing.table import RouteTable
from switchyard.server.errors import map_error
from switchyard.server.formatters import JSONErrorFormatter
from switchyard.server.handler import handle_match

logger = logging.getLogger("switchyard.router")


class Router:
    """Route registry and request dispatcher.

    Usage::

        router = Router()

        with router.group(prefix="/api", middleware=[auth]):
            router.get("/users/{id}", lambda id: {"id": id})

        response = router.handle(Request.from_url("GET", "http://example.com/api/users/7"))

    One instance serves one application. It is not safe to register routes
    from several threads while requests are being dispatched.
    """

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        matcher: PathMatcher | None = None,
    ) -> None:
        self.config = config or RouterConfig()
        self._formatter = self.config.error_formatter or JSONErrorFormatter()

        for pattern in self.config.allowed_domains:
            if has_placeholders(pattern):
                compile_domain(pattern)

        self._routes_dir = None
        if self.config.routes_directory is not None:
            self._routes_dir = validate_routes_directory(self.config.routes_directory)

        self._cache: RouteCache | None = None
        if self.config.use_cache:
            self._cache = RouteCache(
                self.config.cache_directory,
                suffix=self.config.route_file_suffix,
            )

        self._table = RouteTable()
        self._groups = GroupStack()
        self._dispatchers = DispatcherCache(
            self._table,
            matcher,
            max_entries=self.config.dispatcher_cache_size,
        )
        self._handlers = HandlerResolver()
        self._middleware = MiddlewareResolver()
        self._initialized = False

    # -- Properties --

    @property
    def routes(self) -> list[Route]:
        """Registered routes in registration order."""
        return self._table.routes

    @property
    def debug(self) -> bool:
        return self.config.debug

    @property
    def cache_enabled(self) -> bool:
        return self._cache is not None

    @property
    def dispatchers(self) -> DispatcherCache:
        return self._dispatchers

    # -- Registration --

    def group(
        self,
        callback: Callable[["Router"], Any] | None = None,
        *,
        prefix: str | None = None,
        middleware: Iterable[MiddlewareSpec] | None = None,
        name: str | None = None,
        domain: str | None = None,
    ) -> GroupScope:
        """Open a route group.

        Use as a context manager, or pass *callback* to have it called with
        the router while the group is open::

            with router.group(prefix="/admin", name="admin"):
                router.get("/users", UserController)

            router.group(lambda r: r.get("/ping", ping), prefix="/api")
        """
        scope = GroupScope(
            self._groups,
            prefix=prefix,
            middleware=tuple(middleware) if middleware is not None else None,
            name=name,
            domain=domain,
        )
        if callback is not None:
            with scope:
                callback(self)
        return scope

    def add_route(
        self,
        method: str,
        path: str,
        handler: Any = None,
        *,
        cls: type | str | None = None,
        middleware: Iterable[MiddlewareSpec] = (),
        name: str | None = None,
        domain: str | None = None,
    ) -> Route:
        """Register one route under the currently open groups."""
        frame = self._groups.current
        method = method.upper()
        full_path = normalize_path(frame.prefix + path)
        route_domain = domain if domain is not None else frame.domain
        if route_domain is not None and has_placeholders(route_domain):
            compile_domain(route_domain)

        base_name = name or generate_name(method, full_path)
        route_name = f"{frame.name}.{base_name}" if frame.name else base_name

        ref = to_handler(handler, cls=cls, default_method=self.config.default_method)
        params = None
        if isinstance(ref, InlineHandler):
            variables = placeholder_names(route_domain) + placeholder_names(full_path)
            params = describe_parameters(ref.func, variables)

        route = Route(
            method=method,
            path=full_path,
            handler=ref,
            middleware=(*frame.middleware, *middleware),
            name=route_name,
            domain=route_domain,
            params=params,
        )
        self._table.add(route)
        self._dispatchers.clear()
        return route

    def get(self, path: str, handler: Any = None, **options: Any) -> Route:
        return self.add_route("GET", path, handler, **options)

    def post(self, path: str, handler: Any = None, **options: Any) -> Route:
        return self.add_route("POST", path, handler, **options)

    def put(self, path: str, handler: Any = None, **options: Any) -> Route:
        return self.add_route("PUT", path, handler, **options)

    def delete(self, path: str, handler: Any = None, **options: Any) -> Route:
        return self.add_route("DELETE", path, handler, **options)

    def patch(self, path: str, handler: Any = None, **options: Any) -> Route:
        return self.add_route("PATCH", path, handler, **options)

    def route(
        self,
        path: str,
        *,
        methods: Iterable[str] | None = None,
        middleware: Iterable[MiddlewareSpec] = (),
        name: str | None = None,
        domain: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``.
            middleware: Route-level middleware, run inside group middleware.
            name: Route name; generated from method and path when omitted.
            domain: Domain pattern such as ``"{tenant}.example.com"``.
        """

        def decorator(func: Handler) -> Handler:
            for method in methods or ("GET",):
                self.add_route(
                    method,
                    path,
                    func,
                    middleware=tuple(middleware),
                    name=name,
                    domain=domain,
                )
            return func

        return decorator

    def register_routes(self, routes: Iterable[Mapping[str, Any]]) -> list[Route]:
        """Register routes described as mappings.

        Each mapping needs ``path`` and ``handler``; ``method`` defaults to
        ``GET``, and ``class``, ``middleware``, ``name`` and ``domain`` are
        optional.
        """
        registered = []
        for entry in routes:
            registered.append(
                self.add_route(
                    entry.get("method", "GET"),
                    entry["path"],
                    entry.get("handler"),
                    cls=entry.get("class"),
                    middleware=tuple(entry.get("middleware", ())),
                    name=entry.get("name"),
                    domain=entry.get("domain"),
                )
            )
        return registered

    def reset(self) -> None:
        """Drop every route, open group, and compiled dispatcher.

        Route sources are loaded again on the next request.
        """
        self._table.clear()
        self._groups.clear()
        self._dispatchers.clear()
        self._handlers.clear()
        self._middleware.clear()
        self._initialized = False

    def clear_cache(self) -> None:
        """Delete the persisted route cache and every compiled dispatcher."""
        self._dispatchers.clear()
        if self._cache is not None:
            self._cache.clear()

    # -- Initialisation --

    def _ensure_initialized(self) -> RouteLoadError | None:
        if self._initialized:
            return None

        if self._load_from_cache():
            self._initialized = True
            return None

        if self._routes_dir is not None:
            snapshot = self._table.routes
            try:
                count = load_route_files(self, self._routes_dir, self.config.route_file_suffix)
            except RouteLoadError as exc:
                self._table.replace(snapshot)
                self._groups.clear()
                return exc
            logger.debug("Loaded %d route files from %s", count, self._routes_dir)

        self._save_to_cache()
        self._initialized = True
        return None

    def _load_from_cache(self) -> bool:
        if self._cache is None or self._table:
            return False
        if not self._cache.is_valid(self._routes_dir, self.config.cache_version):
            return False
        try:
            routes = self._cache.load()
        except PersistenceError as exc:
            logger.warning("Ignoring route cache %s: %s", self._cache.path, exc)
            return False
        self._table.replace(routes)
        logger.debug("Loaded %d routes from %s", len(routes), self._cache.path)
        return True

    def _save_to_cache(self) -> None:
        if self._cache is None or not self._table:
            return
        try:
            self._cache.save(self._table, self._routes_dir, self.config.cache_version)
        except PersistenceError as exc:
            logger.warning("Route cache not written: %s", exc)

    # -- Dispatch --

    def match(self, request: Request) -> RouteMatch | RouterError:
        """Find the route for *request*, or the routing failure as a value."""
        path = unquote(request.path)
        if path != "/":
            path = path.rstrip("/") or "/"

        host = request.host
        if self.config.enforce_domain and not is_allowed(host, self.config.allowed_domains):
            return DomainNotAllowedError(host)

        outcome = self._dispatchers.get(host or None).dispatch(request.method.upper(), path)
        if isinstance(outcome, WrongMethod):
            return MethodNotAllowedError(outcome.allowed)
        if not isinstance(outcome, Found):
            return RouteNotFoundError(f"Route not found: {request.method} {path}")
        route, path_vars = outcome.payload, outcome.variables

        domain_vars: Mapping[str, str] | None = None
        if route.domain is not None:
            found = match_domain(route.domain, host) if host else NO_MATCH
            if found is NO_MATCH:
                return RouteNotFoundError(f"Route not found for domain: {host}")
            domain_vars = found.params

        return RouteMatch(route=route, variables=merge_variables(domain_vars, path_vars))

    def handle(self, request: Request) -> Response:
        """Dispatch *request* and return the response. Never raises."""
        start = time.perf_counter() if self.debug else 0.0
        try:
            response = self._dispatch(request)
        except Exception as exc:
            response = self._error_response(exc)

        if self.debug:
            elapsed = (time.perf_counter() - start) * 1000
            response = response.with_header("X-Debug-Time", f"{elapsed:.2f}ms")
            response = response.with_header("X-Debug-Routes", str(len(self._table)))
        return response

    def _dispatch(self, request: Request) -> Response:
        failure = self._ensure_initialized()
        if failure is not None:
            return self._error_response(failure)

        result = self.match(request)
        if isinstance(result, RouterError):
            return self._error_response(result)

        return handle_match(
            result,
            request,
            handlers=self._handlers,
            middleware=self._middleware,
            on_error=self._error_response,
        )

    def _error_response(self, exc: BaseException) -> Response:
        return map_error(exc, debug=self.debug, formatter=self._formatter)

    def __repr__(self) -> str:
        return f"Router(routes={len(self._table)}, debug={self.debug})"
