"""Tests for switchyard.server.errors — mapping failures to responses."""

import logging

import pytest

from switchyard.errors import MethodNotAllowedError, RouteNotFoundError, RouterError
from switchyard.server.errors import map_error
from switchyard.server.formatters import GENERIC_MESSAGE, HTMLErrorFormatter


class StatusFormatter:
    """Custom formatter overriding the status through the payload."""

    def format(self, exc: BaseException, debug: bool) -> dict:
        return {"html": "<p>teapot</p>", "status": 418}


class TestMapError:
    def test_json_by_default(self) -> None:
        response = map_error(RouteNotFoundError("Route not found: GET /x"))
        assert response.status == 404
        assert response.content_type == "application/json"
        assert response.json() == {"error": "Route not found: GET /x", "status": 404}

    def test_route_not_found_always_404(self) -> None:
        assert map_error(RouteNotFoundError(status=500)).status == 404

    def test_production_generic_message(self) -> None:
        response = map_error(RuntimeError("connection string leaked"))
        assert response.status == 500
        assert response.json()["error"] == GENERIC_MESSAGE

    def test_debug_literal_message(self) -> None:
        response = map_error(RuntimeError("connection string leaked"), debug=True)
        assert response.json()["error"] == "connection string leaked"
        assert "debug" in response.json()

    def test_invalid_status_becomes_500(self) -> None:
        assert map_error(RouterError(detail="x", status=42)).status == 500

    def test_allow_header_copied(self) -> None:
        response = map_error(MethodNotAllowedError(frozenset({"GET", "POST"})))
        assert response.status == 405
        assert response.header("Allow") == "GET, POST"

    def test_html_formatter(self) -> None:
        response = map_error(RouteNotFoundError(), formatter=HTMLErrorFormatter())
        assert response.status == 404
        assert response.content_type == "text/html; charset=utf-8"
        assert "Route not found" in response.text

    def test_formatter_payload_status(self) -> None:
        response = map_error(RuntimeError("x"), formatter=StatusFormatter())
        assert response.status == 418
        assert response.text == "<p>teapot</p>"


class TestLogging:
    def test_server_errors_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="switchyard.server"):
            map_error(RuntimeError("boom"))
        assert any("RuntimeError" in r.getMessage() for r in caplog.records)

    def test_client_errors_not_logged_as_errors(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="switchyard.server"):
            map_error(RouteNotFoundError())
        assert caplog.records == []
