"""Tests for switchyard.middleware.pipeline — onion composition and adaptation."""

import pytest

from switchyard.errors import MiddlewareResolutionError
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.pipeline import MiddlewareResolver, adapt_middleware, build_pipeline


def _tracer(label: str, log: list[str]):
    def mw(request: Request, next) -> Response:
        log.append(f"{label}-before")
        response = next(request)
        log.append(f"{label}-after")
        return response

    return mw


def passthrough(request: Request, next) -> Response:
    return next(request)


class HeaderMiddleware:
    def __call__(self, request: Request, next) -> Response:
        return next(request).with_header("X-Called", "yes")


class ProcessMiddleware:
    def process(self, request: Request, next) -> Response:
        return next(request).with_header("X-Processed", "yes")


class NeedsArgument:
    def __init__(self, value: str) -> None:
        self.value = value

    def __call__(self, request: Request, next) -> Response:
        return next(request)


def wrong_arity(request: Request) -> Response:
    return Response()


class TestBuildPipeline:
    def test_onion_order(self) -> None:
        log: list[str] = []

        def terminal(request: Request) -> Response:
            log.append("handler")
            return Response()

        pipeline = build_pipeline(
            [_tracer("A", log), _tracer("B", log), _tracer("C", log)],
            terminal,
        )
        pipeline(Request(method="GET", path="/"))
        assert log == [
            "A-before",
            "B-before",
            "C-before",
            "handler",
            "C-after",
            "B-after",
            "A-after",
        ]

    def test_no_middleware_is_terminal(self) -> None:
        def terminal(request: Request) -> Response:
            return Response(status=204)

        assert build_pipeline([], terminal) is terminal

    def test_short_circuit(self) -> None:
        calls: list[str] = []

        def deny(request: Request, next) -> Response:
            return Response(status=401)

        def terminal(request: Request) -> Response:
            calls.append("handler")
            return Response()

        response = build_pipeline([deny], terminal)(Request(method="GET", path="/"))
        assert response.status == 401
        assert calls == []

    def test_middleware_can_replace_request(self) -> None:
        def rewrite(request: Request, next) -> Response:
            return next(request.with_path_params({"rewritten": "1"}))

        def terminal(request: Request) -> Response:
            return Response().with_header("X-Params", ",".join(request.path_params))

        response = build_pipeline([rewrite], terminal)(Request(method="GET", path="/"))
        assert response.header("X-Params") == "rewritten"


class TestAdaptMiddleware:
    def test_function(self) -> None:
        assert adapt_middleware(passthrough) is passthrough

    def test_callable_instance(self) -> None:
        instance = HeaderMiddleware()
        assert adapt_middleware(instance) is instance

    def test_process_object(self) -> None:
        adapted = adapt_middleware(ProcessMiddleware())
        response = adapted(Request(method="GET", path="/"), lambda r: Response())
        assert response.header("X-Processed") == "yes"

    def test_class_is_instantiated(self) -> None:
        adapted = adapt_middleware(HeaderMiddleware)
        response = adapted(Request(method="GET", path="/"), lambda r: Response())
        assert response.header("X-Called") == "yes"

    def test_import_string(self) -> None:
        adapted = adapt_middleware(f"{__name__}:passthrough")
        assert adapted is passthrough

    def test_import_string_class(self) -> None:
        adapted = adapt_middleware(f"{__name__}:ProcessMiddleware")
        response = adapted(Request(method="GET", path="/"), lambda r: Response())
        assert response.header("X-Processed") == "yes"

    def test_unknown_import_string(self) -> None:
        with pytest.raises(MiddlewareResolutionError) as exc_info:
            adapt_middleware("no_such_module_xyz:Auth")
        assert exc_info.value.status == 500
        assert isinstance(exc_info.value.__cause__, ImportError)

    def test_not_callable(self) -> None:
        with pytest.raises(MiddlewareResolutionError):
            adapt_middleware(42)

    def test_class_that_cannot_be_instantiated(self) -> None:
        with pytest.raises(MiddlewareResolutionError):
            adapt_middleware(NeedsArgument)

    def test_wrong_arity(self) -> None:
        with pytest.raises(MiddlewareResolutionError):
            adapt_middleware(wrong_arity)


class TestMiddlewareResolver:
    def test_memoises(self) -> None:
        resolver = MiddlewareResolver()
        first = resolver.resolve(HeaderMiddleware)
        assert resolver.resolve(HeaderMiddleware) is first

    def test_resolve_all_returns_failure_as_value(self) -> None:
        result = MiddlewareResolver().resolve_all([passthrough, "no_such_module_xyz:Auth"])
        assert isinstance(result, MiddlewareResolutionError)

    def test_resolve_all_keeps_order(self) -> None:
        result = MiddlewareResolver().resolve_all([passthrough, f"{__name__}:passthrough"])
        assert result == [passthrough, passthrough]

    def test_clear(self) -> None:
        resolver = MiddlewareResolver()
        first = resolver.resolve(HeaderMiddleware)
        resolver.clear()
        assert resolver.resolve(HeaderMiddleware) is not first
