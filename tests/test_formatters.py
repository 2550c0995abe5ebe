"""Tests for switchyard.server.formatters — error payload strategies."""

import pytest

from switchyard.errors import (
    ErrorKind,
    HandlerResolutionError,
    MethodNotAllowedError,
    MissingParameterError,
    RouteNotFoundError,
    RouterError,
)
from switchyard.server.formatters import (
    GENERIC_MESSAGE,
    HTMLErrorFormatter,
    JSONErrorFormatter,
    debug_details,
    public_message,
    resolve_status,
)


def _raised(exc: BaseException) -> BaseException:
    try:
        raise exc
    except BaseException as caught:
        return caught


class TestResolveStatus:
    def test_route_not_found_forced_to_404(self) -> None:
        assert resolve_status(RouteNotFoundError(status=500)) == 404

    def test_carried_status(self) -> None:
        assert resolve_status(MethodNotAllowedError(frozenset({"GET"}))) == 405

    @pytest.mark.parametrize("status", [0, 99, 600, 1000])
    def test_invalid_status_becomes_500(self, status: int) -> None:
        assert resolve_status(RouterError(detail="x", status=status)) == 500

    def test_plain_exception(self) -> None:
        assert resolve_status(ValueError("boom")) == 500


class TestPublicMessage:
    def test_debug_shows_literal_message(self) -> None:
        assert public_message(ValueError("db password wrong"), debug=True) == "db password wrong"

    def test_production_hides_internal_message(self) -> None:
        assert public_message(ValueError("db password wrong"), debug=False) == GENERIC_MESSAGE

    def test_production_hides_5xx_router_error(self) -> None:
        err = HandlerResolutionError("Class not found: app:Secret")
        assert public_message(err, debug=False) == GENERIC_MESSAGE

    def test_production_keeps_route_not_found(self) -> None:
        err = RouteNotFoundError("Route not found: GET /nope")
        assert public_message(err, debug=False) == "Route not found: GET /nope"

    def test_production_keeps_client_errors(self) -> None:
        err = MissingParameterError("id")
        assert public_message(err, debug=False) == "Missing required parameter: id"

    @pytest.mark.parametrize(
        ("status", "shown"), [(400, True), (499, True), (500, False), (503, False)]
    )
    def test_production_shows_only_client_router_errors(self, status: int, shown: bool) -> None:
        err = RouterError(detail="quota exceeded", status=status)
        assert err.is_client_error is shown
        expected = "quota exceeded" if shown else GENERIC_MESSAGE
        assert public_message(err, debug=False) == expected


class TestDebugDetails:
    def test_raised_exception_has_origin(self) -> None:
        details = debug_details(_raised(ValueError("boom")))
        assert details["exception"] == "ValueError"
        assert details["kind"] == ErrorKind.INTERNAL.value
        assert details["file"] == __file__
        assert isinstance(details["line"], int)
        assert "ValueError: boom" in details["trace"]

    def test_returned_error_has_no_origin(self) -> None:
        details = debug_details(RouteNotFoundError())
        assert details["kind"] == "route_not_found"
        assert details["file"] is None
        assert details["line"] is None


class TestJSONErrorFormatter:
    def test_production_payload(self) -> None:
        data = JSONErrorFormatter().format(ValueError("secret"), debug=False)
        assert data == {"error": GENERIC_MESSAGE, "status": 500}

    def test_debug_payload(self) -> None:
        data = JSONErrorFormatter().format(_raised(ValueError("secret")), debug=True)
        assert data["error"] == "secret"
        assert data["status"] == 500
        assert data["debug"]["exception"] == "ValueError"


class TestHTMLErrorFormatter:
    def test_renders_page(self) -> None:
        data = HTMLErrorFormatter().format(RouteNotFoundError("Route not found: GET /x"), False)
        assert data["status"] == 404
        assert "Route not found: GET /x" in data["html"]
        assert "switchyard-debug" not in data["html"]

    def test_debug_section(self) -> None:
        data = HTMLErrorFormatter().format(_raised(ValueError("boom")), True)
        assert data["status"] == 500
        assert "switchyard-debug" in data["html"]
        assert "ValueError" in data["html"]

    def test_escapes_message(self) -> None:
        data = HTMLErrorFormatter().format(ValueError("<script>alert(1)</script>"), True)
        assert "<script>alert(1)</script>" not in data["html"]

    def test_custom_template(self) -> None:
        formatter = HTMLErrorFormatter(source="<b>{{ status }}: {{ message }}</b>")
        data = formatter.format(MissingParameterError("id"), False)
        assert data["html"] == "<b>400: Missing required parameter: id</b>"
