"""Request handler — runs a matched route through its middleware and handler.

Handler and middleware failures that are returned as values (resolution
errors, missing parameters) are mapped to responses here; anything raised
propagates to the router boundary.
"""

from collections.abc import Callable

from switchyard.errors import RouterError
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.pipeline import MiddlewareResolver, build_pipeline
from switchyard.routing.handlers import HandlerResolver
from switchyard.routing.params import bind_arguments
from switchyard.routing.route import RouteMatch
from switchyard.server.negotiation import negotiate

type ErrorMapper = Callable[[BaseException], Response]


def handle_match(
    match: RouteMatch,
    request: Request,
    *,
    handlers: HandlerResolver,
    middleware: MiddlewareResolver,
    on_error: ErrorMapper,
) -> Response:
    """Process one matched request through the route's full pipeline."""
    stages = middleware.resolve_all(match.route.middleware)
    if isinstance(stages, RouterError):
        return on_error(stages)

    def dispatch(req: Request) -> Response:
        return _invoke_handler(match, req, handlers=handlers, on_error=on_error)

    pipeline = build_pipeline(stages, dispatch)
    return pipeline(request.with_path_params(match.variables))


def _invoke_handler(
    match: RouteMatch,
    request: Request,
    *,
    handlers: HandlerResolver,
    on_error: ErrorMapper,
) -> Response:
    handler = handlers.resolve(match.route)
    if isinstance(handler, RouterError):
        return on_error(handler)

    kwargs = bind_arguments(handler.params, request, match.variables)
    if isinstance(kwargs, RouterError):
        return on_error(kwargs)

    return negotiate(handler(**kwargs))
